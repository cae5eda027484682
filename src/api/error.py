from typing import Optional

from fastapi import status
from src.libs.result import Error

# Use-case error code -> HTTP status for client-facing failures
CLIENT_ERROR_STATUS = {
    "INVALID_INPUT": status.HTTP_400_BAD_REQUEST,
    "INVALID_TOKEN": status.HTTP_400_BAD_REQUEST,
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "WRONG_SUBJECT": status.HTTP_403_FORBIDDEN,
    "EMAIL_CHANGE_NOT_ALLOWED": status.HTTP_403_FORBIDDEN,
    "USER_DISABLED": status.HTTP_403_FORBIDDEN,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "USERNAME_ALREADY_SET": status.HTTP_409_CONFLICT,
    "EMAIL_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "EXPIRED_TOKEN": status.HTTP_410_GONE,
    "DISPATCH_FAILURE": status.HTTP_502_BAD_GATEWAY,
}


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class RateLimitedError(ClientError):
    """429 carrying quota metadata for the response headers"""

    def __init__(self, base_error: Error):
        super().__init__(base_error, status_code=status.HTTP_429_TOO_MANY_REQUESTS)

    @property
    def retry_after(self) -> Optional[int]:
        return self.base_error.details.get("retry_after")


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


def raise_for_error(error: Error):
    """Translate a use-case Error into the matching HTTP exception"""
    if error.code == "RATE_LIMITED":
        raise RateLimitedError(error)
    if error.code in CLIENT_ERROR_STATUS:
        raise ClientError(error, status_code=CLIENT_ERROR_STATUS[error.code])
    raise ServerError(error)
