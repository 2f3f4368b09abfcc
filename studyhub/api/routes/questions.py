from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from studyhub.api.deps import get_client, read_upload
from studyhub.schemas.views import AskResult, QuestionsView
from studyhub.services.client import StudyHubClient

router = APIRouter(prefix="/questions", tags=["Questions"])


@router.get("", response_model=QuestionsView)
def list_questions(client: StudyHubClient = Depends(get_client)):
    return client.questions.view(client.session.can_contribute)


@router.post("/refresh", response_model=QuestionsView)
async def refresh_questions(client: StudyHubClient = Depends(get_client)):
    await client.questions.refresh()
    return client.questions.view(client.session.can_contribute)


@router.post("", response_model=AskResult, status_code=status.HTTP_201_CREATED)
async def ask_question(
    question: str = Form(""),
    image: UploadFile | None = File(None),
    client: StudyHubClient = Depends(get_client)
):
    asker = await client.session.require_user()
    payload = await read_upload(image)
    return await client.questions.ask(question, payload, asker)
