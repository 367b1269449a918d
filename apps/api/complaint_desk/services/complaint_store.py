"""Complaint parent-record store with merge-upsert semantics."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from complaint_desk.db.enums import ActorRole, ComplaintStatus, DEFAULT_COMPLAINT_STATUS
from complaint_desk.db.models import Complaint
from complaint_desk.services.complaint_errors import ComplaintNotFound, translate_store_errors

logger = logging.getLogger(__name__)

# Written once when the record is created; a later upsert never replaces them.
CREATE_ONLY_FIELDS = ("title", "email", "department", "description")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Merge-upsert is not supported on {dialect}")


def upsert_complaint(
    db: Session,
    key: str,
    *,
    title: str,
    email: str,
    department: str,
    description: str,
    last_text_by: ActorRole,
) -> None:
    """
    Create the complaint for key, or merge into the existing one.

    A fresh record starts open with opened_at = last_updated_at = now.
    An existing record only takes the summary fields (last_updated_at,
    last_text_by); title, descriptive fields, status and opened_at stay as
    first written. One statement, so concurrent submissions for the same key
    converge on a single row.
    """
    now = _now_utc()
    insert = _insert_for(db)
    stmt = insert(Complaint).values(
        student_id=key,
        title=title,
        email=email,
        department=department,
        description=description,
        status=DEFAULT_COMPLAINT_STATUS,
        opened_at=now,
        last_updated_at=now,
        last_text_by=last_text_by,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Complaint.student_id],
        set_={
            "last_updated_at": stmt.excluded.last_updated_at,
            "last_text_by": stmt.excluded.last_text_by,
        },
    )
    with translate_store_errors(db, "upsert_complaint"):
        db.execute(stmt)
        db.commit()
    logger.info("Complaint upserted", extra={"complaint_key": key})


def get_complaint(db: Session, key: str) -> Complaint | None:
    """Point lookup by key. None means no complaint, not a failure."""
    with translate_store_errors(db, "get_complaint"):
        return db.get(Complaint, key, populate_existing=True)


def update_summary(
    db: Session,
    key: str,
    *,
    last_text_by: ActorRole,
    last_updated_at: datetime | None = None,
) -> None:
    """Narrow merge of the summary fields after a new message."""
    with translate_store_errors(db, "update_summary"):
        updated = (
            db.query(Complaint)
            .filter(Complaint.student_id == key)
            .update(
                {
                    Complaint.last_updated_at: last_updated_at or _now_utc(),
                    Complaint.last_text_by: last_text_by,
                },
                synchronize_session=False,
            )
        )
        db.commit()
    if not updated:
        raise ComplaintNotFound(f"Complaint {key} not found")


def set_status(db: Session, key: str, status: ComplaintStatus) -> Complaint:
    """
    Overwrite the complaint status.

    This is the admin transition command. Any enum value is accepted;
    no transition order is enforced here.
    """
    with translate_store_errors(db, "set_status"):
        complaint = db.get(Complaint, key, populate_existing=True)
        if complaint is None:
            raise ComplaintNotFound(f"Complaint {key} not found")
        complaint.status = status
        complaint.last_updated_at = _now_utc()
        db.commit()
        db.refresh(complaint)
    logger.info(
        "Complaint status set to %s",
        status.value,
        extra={"complaint_key": key},
    )
    return complaint
