"""Complaint and complaint-message ORM models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from complaint_desk.db.base import Base
from complaint_desk.db.enums import ActorRole, ComplaintStatus, DEFAULT_COMPLAINT_STATUS


def _enum_type(enum_cls, *, name: str) -> Enum:
    """Store str-enums by value as portable VARCHAR columns."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class Complaint(Base):
    """
    One complaint record per student.

    The student identifier is the primary key, so a second submission
    for the same student merges into this row instead of adding one.
    Summary fields (last_updated_at, last_text_by) track the newest
    message in the thread.
    """

    __tablename__ = "complaints"
    __table_args__ = (
        Index("idx_complaints_status", "status"),
        Index("idx_complaints_last_updated", "last_updated_at"),
    )

    student_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ComplaintStatus] = mapped_column(
        _enum_type(ComplaintStatus, name="complaint_status"),
        nullable=False,
        default=DEFAULT_COMPLAINT_STATUS,
    )
    opened_at: Mapped[datetime] = mapped_column(nullable=False)
    last_updated_at: Mapped[datetime] = mapped_column(nullable=False)
    last_text_by: Mapped[ActorRole] = mapped_column(
        _enum_type(ActorRole, name="actor_role"),
        nullable=False,
        default=ActorRole.STUDENT,
    )


class ComplaintMessage(Base):
    """Append-only thread entry. Never updated or deleted."""

    __tablename__ = "complaint_messages"
    __table_args__ = (
        Index("idx_complaint_messages_thread", "student_id", "timestamp", "id"),
    )

    # Autoincrement id doubles as the insertion-order tiebreak
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("complaints.student_id", ondelete="CASCADE"),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    sent_by: Mapped[ActorRole] = mapped_column(
        _enum_type(ActorRole, name="actor_role"),
        nullable=False,
    )
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)

    complaint: Mapped["Complaint"] = relationship()
