"""Pydantic schemas for API request/response models."""

from complaint_desk.schemas.complaint import (
    ComplaintStatusRequest,
    ComplaintSubmitRequest,
    ComplaintSubmitResponse,
    ComplaintSummary,
    ComplaintView,
    DepartmentListResponse,
    FieldErrorRead,
    MessageCreateRequest,
    MessageRead,
)

__all__ = [
    "ComplaintStatusRequest",
    "ComplaintSubmitRequest",
    "ComplaintSubmitResponse",
    "ComplaintSummary",
    "ComplaintView",
    "DepartmentListResponse",
    "FieldErrorRead",
    "MessageCreateRequest",
    "MessageRead",
]
