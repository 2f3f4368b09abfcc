from fastapi import APIRouter, Depends

from studyhub.api.deps import get_client
from studyhub.schemas.views import HomeView
from studyhub.services.client import StudyHubClient

router = APIRouter(tags=["Home"])


@router.get("/", response_model=HomeView)
def home(q: str = "", client: StudyHubClient = Depends(get_client)):
    """
    Whole-page view: the loading placeholder until the first session
    lookup resolves, then the header and the active tab.
    """
    return client.render(query=q)


@router.post("/tabs/{tab}", response_model=HomeView)
async def switch_tab(tab: str, client: StudyHubClient = Depends(get_client)):
    await client.switch_tab(tab)
    return client.render()
