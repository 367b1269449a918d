"""Pydantic schemas for complaint intake, tracking and replies."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Wire names follow the portal's camelCase documents."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ComplaintSubmitRequest(_CamelModel):
    """
    New complaint (or re-submission) from the intake form.

    Fields are plain strings on purpose: validation runs in the service so
    every offending field is reported together.
    """

    student_id: str = Field(default="", alias="studentId")
    title: str = ""
    email: str = ""
    department: str = ""
    description: str = ""


class ComplaintSubmitResponse(_CamelModel):
    """Tracking handle returned after a submission."""

    student_id: str = Field(alias="studentId")


class MessageCreateRequest(_CamelModel):
    """Reply payload. The sender role comes from the session, not the body."""

    text: str = Field(default="", max_length=20000)


class MessageRead(_CamelModel):
    """Thread entry."""

    id: int
    text: str
    sent_by: str = Field(alias="sentBy")
    is_admin: bool = Field(alias="isAdmin")
    timestamp: datetime


class ComplaintSummary(_CamelModel):
    """Complaint record without its thread."""

    student_id: str = Field(alias="studentId")
    title: str
    email: str
    department: str
    description: str
    status: str
    opened_at: datetime = Field(alias="openedAt")
    last_updated_at: datetime = Field(alias="lastUpdatedAt")
    last_text_by: str = Field(alias="lastTextBy")


class ComplaintView(ComplaintSummary):
    """Complaint record with its full ordered thread."""

    messages: list[MessageRead] = Field(default_factory=list)


class ComplaintStatusRequest(_CamelModel):
    """Admin status change payload."""

    status: str


class FieldErrorRead(_CamelModel):
    """One offending field in a rejected submission."""

    field: str
    message: str


class DepartmentListResponse(_CamelModel):
    """Departments accepted by the intake form."""

    items: list[str] = Field(default_factory=list)
