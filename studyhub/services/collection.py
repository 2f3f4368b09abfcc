import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from studyhub.core.errors import DataStoreError, SaveError, StorageError, UploadError

logger = logging.getLogger(__name__)

SAVE_FAILED = "Lỗi lưu: "


class ListState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class FilePayload:
    """A file picked by the user: its original name, bytes and MIME type"""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        return self.filename.rsplit(".", 1)[-1] if "." in self.filename else ""


def generate_key(extension: str) -> str:
    """Random storage key that keeps the given extension"""
    return f"{uuid.uuid4()}.{extension}"


class CollectionManager:
    """
    In-memory copy of one data store collection.

    Subclasses set `collection` and `schema`. The list is replaced
    wholesale on every refresh(); a failed fetch leaves it empty with the
    FAILED state and the error message recorded.
    """

    collection: str
    schema = None

    def __init__(self, datastore, storage, bucket: str):
        self.datastore = datastore
        self.storage = storage
        self.bucket = bucket
        self.items: List = []
        self.state = ListState.IDLE
        self.error: Optional[str] = None

    async def refresh(self) -> List:
        self.state = ListState.LOADING
        try:
            records = await run_in_threadpool(
                self.datastore.select_all, self.collection, "created_at", True
            )
        except DataStoreError as e:
            logger.warning("Fetching %s failed: %s", self.collection, e)
            self.items = []
            self.error = str(e)
            self.state = ListState.FAILED
            return self.items

        self.items = [self.schema.model_validate(record) for record in records]
        self.error = None
        self.state = ListState.LOADED if self.items else ListState.EMPTY
        return self.items

    async def _store_file(self, key: str, file: FilePayload, error_prefix: str) -> str:
        """Upload the file under key and return its public URL"""
        try:
            await run_in_threadpool(
                self.storage.upload, self.bucket, key, file.content, file.content_type
            )
        except StorageError as e:
            raise UploadError(f"{error_prefix}{e}") from e
        return self.storage.get_public_url(self.bucket, key)

    async def _insert(self, record: Dict[str, Any], stored_key: Optional[str] = None) -> Dict[str, Any]:
        """
        Insert the metadata record. If that fails after a file was stored
        under stored_key, the file is deleted again so it is not orphaned.
        """
        try:
            return await run_in_threadpool(self.datastore.insert, self.collection, record)
        except DataStoreError as e:
            if stored_key is not None:
                deleted = await run_in_threadpool(self.storage.delete, self.bucket, stored_key)
                if not deleted:
                    logger.error("Orphaned object left in %s: %s", self.bucket, stored_key)
            raise SaveError(f"{SAVE_FAILED}{e}") from e
