from enum import Enum
from typing import Optional

from fastapi import HTTPException, status


class ErrorKind(str, Enum):
    INPUT_VALIDATION = "input_validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    STORAGE = "storage"
    INTERNAL = "internal"


STATUS_CODES = {
    ErrorKind.INPUT_VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UPSTREAM_UNAVAILABLE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(HTTPException):
    """Base application error.

    Every error carries an ``ErrorKind``. The underlying cause (network,
    database, encoder) is kept on ``__cause__`` by raising with ``from``.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    default_detail: str = "An internal error occurred. Please try again later."

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=STATUS_CODES[self.kind],
            detail=detail or self.default_detail,
        )


class InputValidationError(AppError):
    kind = ErrorKind.INPUT_VALIDATION
    default_detail = "There was an error parsing the input"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_detail = "Resource not found"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_detail = "Resource already exists"


class UpstreamUnavailableError(AppError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    default_detail = "An upstream service is unavailable"


class StorageError(AppError):
    kind = ErrorKind.STORAGE
    default_detail = "An internal database error occurred"
