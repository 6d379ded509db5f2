"""
Error taxonomy for upload endpoints. Every class is an HTTPException so FastAPI
carries it to the handler in app.main, which logs it and renders {"error": ...}.
"""
from fastapi import HTTPException, status


class UploadError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, cause: BaseException | None = None, headers: dict | None = None):
        super().__init__(status_code=self.status_code, detail=message, headers=headers)
        self.cause = cause


class ClientInputError(UploadError):
    """Malformed id, missing/unparsable form file, rejected content type."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(UploadError):
    """Missing/invalid credential or caller is not the owner."""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message, cause, headers={"WWW-Authenticate": "Bearer"})


class DependencyError(UploadError):
    """Record lookup, local file I/O, ffprobe or object storage failed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PersistenceConflict(UploadError):
    """Video record could not be updated."""
    status_code = status.HTTP_400_BAD_REQUEST
