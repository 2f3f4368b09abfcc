import logging
from typing import List, Optional

from studyhub.core.config import ALLOWED_DOCUMENT_EXTENSIONS, DOCS_BUCKET
from studyhub.core.errors import AuthError, ValidationError
from studyhub.schemas.auth import SessionUser
from studyhub.schemas.document import DocumentOut
from studyhub.schemas.views import DocumentsView, UploadResult
from studyhub.services.collection import CollectionManager, FilePayload, generate_key

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Điền đủ thông tin!"
UNSUPPORTED_TYPE = "Chỉ chấp nhận tài liệu .pdf, .docx, .pptx"
UPLOAD_FAILED = "Lỗi upload: "
UPLOADED = "Đăng thành công!"


def search(documents: List[DocumentOut], query: str) -> List[DocumentOut]:
    """Case-insensitive substring match on title or subject"""
    if not query:
        return documents
    needle = query.lower()
    return [
        doc for doc in documents
        if needle in doc.title.lower() or needle in doc.subject.lower()
    ]


class DocumentListManager(CollectionManager):
    collection = "documents"
    schema = DocumentOut

    def __init__(self, datastore, storage, bucket: str = DOCS_BUCKET):
        super().__init__(datastore, storage, bucket)

    search = staticmethod(search)

    async def upload(
        self,
        title: str,
        subject: str,
        file: Optional[FilePayload],
        uploader: Optional[SessionUser]
    ) -> UploadResult:
        """
        Store the file, then insert its metadata and refresh the list.

        Nothing touches the network when a field is missing. The metadata
        row is never written unless the upload succeeded.
        """
        if file is None or not file.filename or not title or not subject:
            raise ValidationError(MISSING_FIELDS)
        if file.extension.lower() not in ALLOWED_DOCUMENT_EXTENSIONS:
            raise ValidationError(UNSUPPORTED_TYPE)
        if uploader is None:
            raise AuthError("Bạn cần đăng nhập để đăng tài liệu")

        key = generate_key(file.extension)
        file_url = await self._store_file(key, file, UPLOAD_FAILED)

        created = await self._insert(
            {
                "title": title,
                "subject": subject,
                "file_url": file_url,
                "file_name": file.filename,
                "uploaded_by": uploader.label,
            },
            stored_key=key,
        )
        logger.info("Document %s uploaded by %s", created.get("id"), uploader.label)

        await self.refresh()
        return UploadResult(message=UPLOADED, document=DocumentOut.model_validate(created))

    def view(self, can_upload: bool, query: str = "") -> DocumentsView:
        return DocumentsView(
            state=self.state.value,
            error=self.error,
            can_upload=can_upload,
            query=query,
            items=search(self.items, query),
        )
