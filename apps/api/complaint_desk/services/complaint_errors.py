"""Complaint desk error taxonomy.

Services raise these; routers translate them to HTTP responses.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class ComplaintServiceError(Exception):
    """Base exception for complaint desk errors."""

    code = "complaint_error"


class InvalidKey(ComplaintServiceError):
    """Student identifier is blank after trimming."""

    code = "invalid_key"


@dataclass(frozen=True)
class FieldError:
    """One offending input field."""

    field: str
    message: str


class ComplaintValidationError(ComplaintServiceError):
    """Submission failed validation; carries every offending field."""

    code = "validation_error"

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(error.field for error in self.errors)
        super().__init__(f"Invalid complaint fields: {fields}")


class ComplaintNotFound(ComplaintServiceError):
    """No complaint exists for the key."""

    code = "not_found"


class ThreadClosed(ComplaintServiceError):
    """Complaint is closed and accepts no new messages."""

    code = "thread_closed"


class EmptyMessage(ComplaintServiceError):
    """Message text is blank after trimming."""

    code = "empty_message"


class InvalidStatus(ComplaintServiceError):
    """Status value is not a known complaint status."""

    code = "invalid_status"


class StoreUnavailable(ComplaintServiceError):
    """Transient store failure. Every operation here is safe to retry."""

    code = "store_unavailable"


class PartialSubmission(StoreUnavailable):
    """Complaint record was written but its first message was not."""

    code = "partial_submission"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Complaint {key} saved without its opening message; retry to complete")


@contextmanager
def translate_store_errors(db: Session, operation: str) -> Iterator[None]:
    """Roll back and re-raise transient database failures as StoreUnavailable."""
    try:
        yield
    except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
        db.rollback()
        logger.warning("Complaint store %s failed: %s", operation, exc.__class__.__name__)
        raise StoreUnavailable(f"Complaint store unavailable during {operation}") from exc
