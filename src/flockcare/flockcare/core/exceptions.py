from __future__ import annotations

import logging
from functools import wraps

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when an actor lacks the capability or relationship for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record, actor or member does not exist."""


class InvalidStateError(DomainError):
    """Raised when a lifecycle transition is not legal from the current status."""


class DuplicateError(DomainError):
    """Raised when an attendance record already exists for the subject and day."""


class InternalError(DomainError):
    """Unexpected failure below the service boundary (storage, driver, bug)."""


def domain_boundary(func):
    """Re-raise anything that is not a DomainError as InternalError."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DomainError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure in %s", func.__qualname__)
            raise InternalError(f"{func.__name__} failed unexpectedly") from exc

    return wrapper
