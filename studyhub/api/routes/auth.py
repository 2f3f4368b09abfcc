from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from studyhub.api.deps import get_client, keep_client_cookie
from studyhub.schemas.views import HeaderView
from studyhub.services.client import StudyHubClient

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/session", response_model=HeaderView)
def current_session(client: StudyHubClient = Depends(get_client)):
    return client.session.header()


@router.get("/login")
async def login(request: Request, client: StudyHubClient = Depends(get_client)):
    """Send the browser to the identity provider's consent page"""
    redirect = await client.session.sign_in()
    response = RedirectResponse(redirect.auth_uri, status_code=status.HTTP_302_FOUND)
    return keep_client_cookie(request, response)


@router.get("/callback")
async def callback(request: Request, client: StudyHubClient = Depends(get_client)):
    """
    The provider redirects here. The signed-in user reaches the session
    controller through its subscription, not through this handler.
    """
    await client.session.complete_sign_in(str(request.url))
    response = RedirectResponse("/", status_code=status.HTTP_302_FOUND)
    return keep_client_cookie(request, response)


@router.post("/logout", response_model=HeaderView)
async def logout(client: StudyHubClient = Depends(get_client)):
    await client.session.sign_out()
    return client.session.header()
