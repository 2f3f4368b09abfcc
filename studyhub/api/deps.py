from functools import lru_cache

from fastapi import Depends, Request, Response, UploadFile

from studyhub.core.config import SESSION_COOKIE
from studyhub.services.client import ClientRegistry, StudyHubClient
from studyhub.services.collection import FilePayload
from studyhub.services.datastore import SqlDataStore
from studyhub.services.documents import DocumentListManager
from studyhub.services.identity import FirebaseIdentityService
from studyhub.services.questions import QuestionBoardManager
from studyhub.services.session import SessionController
from studyhub.services.storage import S3ObjectStore


@lru_cache
def get_object_store() -> S3ObjectStore:
    return S3ObjectStore()


@lru_cache
def get_data_store() -> SqlDataStore:
    return SqlDataStore()


def build_client() -> StudyHubClient:
    """
    New client for a browser. The identity service is per browser; the
    object store and data store are shared.
    """
    storage = get_object_store()
    datastore = get_data_store()
    return StudyHubClient(
        session=SessionController(FirebaseIdentityService()),
        documents=DocumentListManager(datastore, storage),
        questions=QuestionBoardManager(datastore, storage),
    )


def get_registry(request: Request) -> ClientRegistry:
    return request.app.state.registry


async def get_client(
    request: Request,
    response: Response,
    registry: ClientRegistry = Depends(get_registry)
) -> StudyHubClient:
    """Resolve the caller's client from the browser id cookie, creating one if needed"""
    cookie = request.cookies.get(SESSION_COOKIE)
    client_id, client = await registry.get_or_create(cookie)
    request.state.client_id = client_id
    if client_id != cookie:
        response.set_cookie(SESSION_COOKIE, client_id, httponly=True, samesite="lax")
    return client


async def read_upload(file: UploadFile | None) -> FilePayload | None:
    """An empty file input arrives as a part without a filename"""
    if file is None or not file.filename:
        return None
    return FilePayload(
        filename=file.filename,
        content=await file.read(),
        content_type=file.content_type,
    )


def keep_client_cookie(request: Request, response: Response) -> Response:
    """Responses returned directly (redirects) do not inherit dependency cookies"""
    client_id = getattr(request.state, "client_id", None)
    if client_id and client_id != request.cookies.get(SESSION_COOKIE):
        response.set_cookie(SESSION_COOKIE, client_id, httponly=True, samesite="lax")
    return response
