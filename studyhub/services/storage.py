import logging
from typing import Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from studyhub.core.config import (
    ACCESS_KEY,
    SECRET_KEY,
    STORAGE_ENDPOINT,
    STORAGE_PUBLIC_URL,
    STORAGE_REGION,
)
from studyhub.core.errors import StorageError

logger = logging.getLogger(__name__)


def _error_message(error: Exception) -> str:
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        return details.get("Message") or details.get("Code") or str(error)
    return str(error)


class S3ObjectStore:
    """
    Object store backed by an S3 compatible service.

    Objects are addressed by bucket + key and uploaded world-readable so
    that get_public_url() can hand out a plain URL.
    """

    def __init__(self, client=None, public_base_url: str = STORAGE_PUBLIC_URL):
        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                region_name=STORAGE_REGION,
                endpoint_url=STORAGE_ENDPOINT,
                aws_access_key_id=ACCESS_KEY,
                aws_secret_access_key=SECRET_KEY,
            )
        self.s3 = client
        self.public_base_url = public_base_url.rstrip("/")

    def upload(
        self,
        bucket: str,
        key: str,
        blob: bytes,
        content_type: Optional[str] = None
    ) -> str:
        """
        Upload raw bytes under bucket/key

        Returns:
            The object key

        Raises:
            StorageError: with the service's message when the upload fails
        """
        params = {
            "Bucket": bucket,
            "Key": key,
            "Body": blob,
            "ACL": "public-read",
        }
        if content_type:
            params["ContentType"] = content_type

        try:
            self.s3.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error("Upload of %s/%s failed: %s", bucket, key, e)
            raise StorageError(_error_message(e)) from e

        return key

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{bucket}/{quote(key)}"

    def delete(self, bucket: str, key: str) -> bool:
        """
        Delete an object from storage

        Returns:
            True if deletion was successful
        """
        try:
            self.s3.delete_object(Bucket=bucket, Key=key)
            return True
        except (BotoCoreError, ClientError) as e:
            # Log error but don't fail if object doesn't exist
            logger.warning("Failed to delete %s/%s: %s", bucket, key, e)
            return False
