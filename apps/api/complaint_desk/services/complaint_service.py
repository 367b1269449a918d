"""Complaint lifecycle: submit, track, continue the conversation, change status."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from complaint_desk.core.config import settings
from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import ActorRole, CLOSED_THREAD_STATUSES, ComplaintStatus
from complaint_desk.db.models import Complaint, ComplaintMessage
from complaint_desk.services import complaint_store, message_thread_store
from complaint_desk.services.complaint_errors import (
    ComplaintNotFound,
    ComplaintValidationError,
    EmptyMessage,
    FieldError,
    InvalidStatus,
    PartialSubmission,
    StoreUnavailable,
    ThreadClosed,
)
from complaint_desk.utils.normalization import (
    is_valid_email,
    normalize_email,
    normalize_text,
    resolve_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComplaintInput:
    """Raw intake form values."""

    student_id: str
    title: str
    email: str
    department: str
    description: str


@dataclass(frozen=True)
class ComplaintThread:
    """A complaint record together with its ordered messages."""

    complaint: Complaint
    messages: list[ComplaintMessage] = field(default_factory=list)


# =============================================================================
# Helpers
# =============================================================================


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _enum_value(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


def _column_length(column_name: str) -> int | None:
    return getattr(Complaint.__table__.c[column_name].type, "length", None)


# Bounded columns; longer input would be rejected by the database itself
FIELD_MAX_LENGTHS = {
    "studentId": _column_length("student_id"),
    "email": _column_length("email"),
    "department": _column_length("department"),
}


def _too_long(field_name: str, value: str) -> bool:
    limit = FIELD_MAX_LENGTHS.get(field_name)
    return limit is not None and len(value) > limit


def _too_long_error(field_name: str) -> FieldError:
    return FieldError(field_name, f"Must be at most {FIELD_MAX_LENGTHS[field_name]} characters")


def validate_submission(data: ComplaintInput) -> ComplaintInput:
    """
    Check every intake field and return the trimmed values.

    Raises:
        ComplaintValidationError: with one FieldError per offending field
    """
    errors: list[FieldError] = []

    student_id = normalize_text(data.student_id)
    title = normalize_text(data.title)
    email = normalize_email(data.email) or ""
    department = normalize_text(data.department)
    description = normalize_text(data.description)

    if not student_id:
        errors.append(FieldError("studentId", "Student ID is required"))
    elif _too_long("studentId", student_id):
        errors.append(_too_long_error("studentId"))

    if not title:
        errors.append(FieldError("title", "Title is required"))

    if not email:
        errors.append(FieldError("email", "Email is required"))
    elif _too_long("email", email):
        errors.append(_too_long_error("email"))
    elif not is_valid_email(email):
        errors.append(FieldError("email", "Invalid email format"))

    allowed_departments = settings.departments_list
    if not department:
        errors.append(FieldError("department", "Department is required"))
    elif _too_long("department", department):
        errors.append(_too_long_error("department"))
    elif allowed_departments and department not in allowed_departments:
        errors.append(FieldError("department", "Unknown department"))

    min_length = settings.COMPLAINT_DESCRIPTION_MIN_LENGTH
    if not description:
        errors.append(FieldError("description", "Detailed description is required"))
    elif len(description) < min_length:
        errors.append(
            FieldError("description", f"Please provide at least {min_length} characters")
        )

    if errors:
        raise ComplaintValidationError(errors)

    return ComplaintInput(
        student_id=student_id,
        title=title,
        email=email,
        department=department,
        description=description,
    )


def is_thread_writable(complaint: Complaint) -> bool:
    """Closed complaints accept no further messages."""
    return complaint.status not in CLOSED_THREAD_STATUSES


# =============================================================================
# Operations
# =============================================================================


def submit_complaint(db: Session, data: ComplaintInput) -> str:
    """
    Create or extend the complaint for a student and post the description.

    The parent record and the opening message are two separate writes.
    If the second one fails the record stays (possibly with an empty
    thread) and PartialSubmission tells the caller to retry.

    Returns:
        The complaint key, which doubles as the student's tracking handle.
    """
    clean = validate_submission(data)
    key = resolve_key(clean.student_id)

    existing = complaint_store.get_complaint(db, key)
    if existing is not None and not is_thread_writable(existing):
        raise ThreadClosed(f"Complaint {key} is closed")

    if existing is not None and message_thread_store.count_messages(db, key) == 0:
        # An earlier submission stored the record but lost its opening message
        logger.info(
            "Completing partial submission",
            extra=build_log_context(complaint_key=key, actor_role=ActorRole.STUDENT.value),
        )

    complaint_store.upsert_complaint(
        db,
        key,
        title=clean.title,
        email=clean.email,
        department=clean.department,
        description=clean.description,
        last_text_by=ActorRole.STUDENT,
    )

    try:
        message_thread_store.append_message(
            db, key, text=clean.description, sent_by=ActorRole.STUDENT
        )
    except StoreUnavailable as exc:
        logger.warning(
            "Complaint saved without opening message",
            extra=build_log_context(complaint_key=key, actor_role=ActorRole.STUDENT.value),
        )
        raise PartialSubmission(key) from exc

    logger.info(
        "Complaint submitted",
        extra=build_log_context(
            complaint_key=key,
            actor_role=ActorRole.STUDENT.value,
        ),
    )
    return key


def track_complaint(db: Session, raw_id: str) -> ComplaintThread | None:
    """
    Load a complaint and its full thread.

    Returns None when no complaint exists for the student; that is the
    "no complaints found" outcome, not an error.
    """
    key = resolve_key(raw_id)
    complaint = complaint_store.get_complaint(db, key)
    if complaint is None:
        return None
    messages = message_thread_store.list_messages(db, key)
    return ComplaintThread(complaint=complaint, messages=messages)


def continue_conversation(
    db: Session,
    key: str,
    *,
    text: str,
    actor_role: ActorRole,
) -> ComplaintMessage:
    """
    Append a reply to an open thread and refresh the summary fields.

    Raises:
        ComplaintNotFound: no complaint for key
        ThreadClosed: complaint is closed; nothing is appended
        EmptyMessage: text is blank after trimming
    """
    key = resolve_key(key)
    complaint = complaint_store.get_complaint(db, key)
    if complaint is None:
        raise ComplaintNotFound(f"Complaint {key} not found")
    if not is_thread_writable(complaint):
        raise ThreadClosed(f"Complaint {key} is closed")

    body = normalize_text(text)
    if not body:
        raise EmptyMessage("Message cannot be empty")

    message = message_thread_store.append_message(db, key, text=body, sent_by=actor_role)
    complaint_store.update_summary(
        db,
        key,
        last_text_by=actor_role,
        last_updated_at=_as_utc(message.timestamp),
    )

    logger.info(
        "Complaint message appended",
        extra=build_log_context(complaint_key=key, actor_role=actor_role.value),
    )
    return message


def change_status(db: Session, key: str, status_value: str) -> Complaint:
    """Admin status command. The enum is the only contract."""
    try:
        status = ComplaintStatus(status_value)
    except ValueError as exc:
        raise InvalidStatus(f"Invalid complaint status: {status_value}") from exc
    key = resolve_key(key)
    return complaint_store.set_status(db, key, status)


def list_departments() -> list[str]:
    return settings.departments_list


# =============================================================================
# Presentation
# =============================================================================


def message_payload(message: ComplaintMessage) -> dict:
    return {
        "id": message.id,
        "text": message.text,
        "sent_by": _enum_value(message.sent_by),
        "is_admin": message.is_admin,
        "timestamp": _as_utc(message.timestamp),
    }


def complaint_payload(complaint: Complaint) -> dict:
    return {
        "student_id": complaint.student_id,
        "title": complaint.title,
        "email": complaint.email,
        "department": complaint.department,
        "description": complaint.description,
        "status": _enum_value(complaint.status),
        "opened_at": _as_utc(complaint.opened_at),
        "last_updated_at": _as_utc(complaint.last_updated_at),
        "last_text_by": _enum_value(complaint.last_text_by),
    }


def thread_payload(thread: ComplaintThread) -> dict:
    payload = complaint_payload(thread.complaint)
    payload["messages"] = [message_payload(message) for message in thread.messages]
    return payload
