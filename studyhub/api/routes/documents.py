from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from studyhub.api.deps import get_client, read_upload
from studyhub.schemas.views import DocumentsView, UploadResult
from studyhub.services.client import StudyHubClient

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.get("", response_model=DocumentsView)
def list_documents(q: str = "", client: StudyHubClient = Depends(get_client)):
    """Already-fetched documents, filtered locally by title or subject"""
    return client.documents.view(client.session.can_contribute, q)


@router.post("/refresh", response_model=DocumentsView)
async def refresh_documents(client: StudyHubClient = Depends(get_client)):
    await client.documents.refresh()
    return client.documents.view(client.session.can_contribute)


@router.post("", response_model=UploadResult, status_code=status.HTTP_201_CREATED)
async def upload_document(
    title: str = Form(""),
    subject: str = Form(""),
    file: UploadFile | None = File(None),
    client: StudyHubClient = Depends(get_client)
):
    uploader = await client.session.require_user()
    payload = await read_upload(file)
    return await client.documents.upload(title, subject, payload, uploader)
