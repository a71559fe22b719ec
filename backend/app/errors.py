"""Error taxonomy shared by the service layer and the HTTP handlers."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import status
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

LOGGER = logging.getLogger(__name__)

_STATEMENT_TIMEOUT_MARKERS = ("statement timeout", "canceling statement", "querycanceled")


class ServiceError(RuntimeError):
    """Base class for failures surfaced by the service layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, error: str | None = None) -> None:
        self.message = message
        self.error = error or message
        super().__init__(message)

    def to_payload(self) -> dict[str, str]:
        return {"message": self.message, "error": self.error}


class ValidationError(ServiceError):
    """A required field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(ServiceError):
    """A business rule forbids the requested operation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    """The referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class PersistenceError(ServiceError):
    """The database or the object store failed to complete an operation."""


class OperationTimeoutError(PersistenceError):
    """A database or remote call ran past its timeout."""


class ConfigurationError(RuntimeError):
    """Raised when an external collaborator cannot be configured."""


def _is_timeout(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, PoolTimeoutError):
        return True
    if isinstance(exc, OperationalError):
        text = f"{type(exc.orig).__name__} {exc.orig}".lower()
        return any(marker in text for marker in _STATEMENT_TIMEOUT_MARKERS)
    return False


@contextmanager
def persistence_guard(db: Session, action: str) -> Iterator[None]:
    """Roll back and translate SQLAlchemy failures raised inside the block."""

    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        if _is_timeout(exc):
            LOGGER.error("Timed out while trying to %s", action)
            raise OperationTimeoutError(
                f"Error trying to {action}", error=f"Timed out while trying to {action}"
            ) from exc
        LOGGER.error("Database failure while trying to %s: %s", action, exc)
        detail = getattr(exc, "orig", None) or exc
        raise PersistenceError(f"Error trying to {action}", error=str(detail)) from exc
