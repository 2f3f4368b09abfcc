"""
Error taxonomy for StudyHub

Every user-facing failure carries the message shown to the user as a
blocking acknowledgment. None of them is fatal: the client stays usable.
"""

from fastapi import status


class StudyHubError(Exception):
    """Base error with the message shown to the user"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StudyHubError):
    """A required field is missing or invalid; no network call was made"""

    status_code = status.HTTP_400_BAD_REQUEST


class UploadError(StudyHubError):
    """The object store rejected or failed an upload"""

    status_code = status.HTTP_502_BAD_GATEWAY


class SaveError(StudyHubError):
    """The data store rejected or failed an insert"""

    status_code = status.HTTP_502_BAD_GATEWAY


class AuthError(StudyHubError):
    """No signed-in user, or the identity provider refused the handshake"""

    status_code = status.HTTP_401_UNAUTHORIZED


# Raised by the service adapters, translated by the managers


class StorageError(Exception):
    pass


class DataStoreError(Exception):
    pass


class IdentityError(Exception):
    pass
