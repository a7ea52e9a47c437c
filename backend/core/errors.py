"""Application error taxonomy.

Every failure that crosses a layer boundary is an ``AppError`` carrying an
``ErrorKind``. Callers branch on ``kind``; they never parse messages or the
text of a wrapped storage exception.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class ErrorKind(Enum):
    """Error classes understood by the HTTP layer."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    CONFLICT = "CONFLICT"
    UNEXPECTED = "UNEXPECTED"


class AppError(Exception):
    """Base error with a kind, a user-safe message and an optional cause."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        fields: Sequence[Dict[str, Any]] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.fields: List[Dict[str, Any]] = list(fields)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.kind.value}: {self.message} (cause: {self.cause})"
        return f"{self.kind.value}: {self.message}"


class NotFoundError(AppError):
    """Raised when no row matches the requested id."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: int, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{entity} not found", cause=cause)
        self.entity = entity
        self.entity_id = entity_id


class ValidationFailedError(AppError):
    """Raised when a payload violates one or more field constraints.

    ``fields`` lists every violation as ``{"field": ..., "message": ...}``.
    """

    kind = ErrorKind.VALIDATION_FAILED

    def __init__(
        self,
        fields: Sequence[Dict[str, Any]],
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__("validation failed", cause=cause, fields=fields)


class BadRequestError(AppError):
    kind = ErrorKind.BAD_REQUEST


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, cause: Optional[BaseException] = None) -> None:
        super().__init__("unauthorized", cause=cause)


class UnsupportedMediaTypeError(AppError):
    kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE

    def __init__(self, content_type: Optional[str]) -> None:
        super().__init__("Content-Type must be application/json")
        self.content_type = content_type


class ConflictError(AppError):
    """Raised when a foreign key forbids the requested change."""

    kind = ErrorKind.CONFLICT


class UnexpectedError(AppError):
    """Any storage or I/O failure that has no better classification."""

    kind = ErrorKind.UNEXPECTED
