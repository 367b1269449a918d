"""Append-only message thread store, one thread per complaint key."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from complaint_desk.db.enums import ActorRole
from complaint_desk.db.models import ComplaintMessage
from complaint_desk.services.complaint_errors import translate_store_errors


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _latest_timestamp(db: Session, key: str) -> datetime | None:
    latest = (
        db.query(func.max(ComplaintMessage.timestamp))
        .filter(ComplaintMessage.student_id == key)
        .scalar()
    )
    return _as_utc(latest) if latest is not None else None


def append_message(
    db: Session,
    key: str,
    *,
    text: str,
    sent_by: ActorRole,
) -> ComplaintMessage:
    """
    Append a message to the thread for key.

    The timestamp is assigned here, never by the caller, and is never
    earlier than the newest message already in the thread. Identical text
    sent twice produces two messages.
    """
    with translate_store_errors(db, "append_message"):
        timestamp = _now_utc()
        latest = _latest_timestamp(db, key)
        if latest is not None and latest > timestamp:
            timestamp = latest

        message = ComplaintMessage(
            student_id=key,
            text=text,
            sent_by=sent_by,
            is_admin=sent_by == ActorRole.ADMIN,
            timestamp=timestamp,
        )
        db.add(message)
        db.commit()
        db.refresh(message)
    return message


def list_messages(db: Session, key: str) -> list[ComplaintMessage]:
    """Full thread for key, oldest first; insertion order breaks timestamp ties."""
    with translate_store_errors(db, "list_messages"):
        return (
            db.query(ComplaintMessage)
            .filter(ComplaintMessage.student_id == key)
            .order_by(ComplaintMessage.timestamp.asc(), ComplaintMessage.id.asc())
            .all()
        )


def count_messages(db: Session, key: str) -> int:
    with translate_store_errors(db, "count_messages"):
        return (
            db.query(func.count(ComplaintMessage.id))
            .filter(ComplaintMessage.student_id == key)
            .scalar()
        ) or 0
