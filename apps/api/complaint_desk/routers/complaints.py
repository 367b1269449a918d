"""Complaint intake, tracking and conversation APIs."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from complaint_desk.core.deps import get_actor_role, get_db, require_admin, require_csrf_header
from complaint_desk.core.rate_limit import limiter, submit_limit
from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import ActorRole
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
from complaint_desk.services import complaint_service
from complaint_desk.services.complaint_errors import (
    ComplaintNotFound,
    ComplaintServiceError,
    ComplaintValidationError,
    EmptyMessage,
    InvalidKey,
    InvalidStatus,
    PartialSubmission,
    StoreUnavailable,
    ThreadClosed,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/complaints", tags=["Complaints"])

# Lives outside /complaints so it never shadows a complaint key
departments_router = APIRouter(tags=["Complaints"])


def _error(status_code: int, exc: ComplaintServiceError) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": exc.code, "message": str(exc)})


def _store_error(request: Request, student_id: str, exc: StoreUnavailable) -> JSONResponse:
    logger.warning(
        "Complaint store unavailable",
        extra=build_log_context(
            complaint_key=student_id.strip() or None,
            request_id=request.headers.get("X-Request-ID"),
            route=request.url.path,
            method=request.method,
        ),
    )
    body = {"detail": {"code": exc.code, "message": str(exc)}}
    if isinstance(exc, PartialSubmission):
        body["detail"]["studentId"] = exc.key
    return JSONResponse(status_code=503, content=body, headers={"Retry-After": "1"})


@departments_router.get("/complaint-departments", response_model=DepartmentListResponse)
def list_departments() -> DepartmentListResponse:
    """Departments offered by the intake form (empty means free text)."""
    return DepartmentListResponse(items=complaint_service.list_departments())


@router.post(
    "",
    status_code=201,
    response_model=ComplaintSubmitResponse,
    dependencies=[Depends(require_csrf_header)],
)
@limiter.limit(submit_limit)
def submit_complaint(
    request: Request,
    data: ComplaintSubmitRequest,
    db: Session = Depends(get_db),
):
    """Submit a complaint, or add to the existing one for this student."""
    try:
        key = complaint_service.submit_complaint(
            db,
            complaint_service.ComplaintInput(
                student_id=data.student_id,
                title=data.title,
                email=data.email,
                department=data.department,
                description=data.description,
            ),
        )
    except ComplaintValidationError as e:
        errors = [FieldErrorRead(field=err.field, message=err.message) for err in e.errors]
        raise HTTPException(
            status_code=422,
            detail={
                "code": e.code,
                "message": str(e),
                "errors": [err.model_dump() for err in errors],
            },
        )
    except ThreadClosed as e:
        raise _error(409, e)
    except StoreUnavailable as e:
        return _store_error(request, data.student_id, e)
    return ComplaintSubmitResponse(student_id=key)


@router.get("/{student_id:path}", response_model=ComplaintView)
def track_complaint(
    request: Request,
    student_id: str,
    db: Session = Depends(get_db),
):
    """Complaint record and its full conversation, oldest message first."""
    try:
        thread = complaint_service.track_complaint(db, student_id)
    except InvalidKey as e:
        raise _error(422, e)
    except StoreUnavailable as e:
        return _store_error(request, student_id, e)
    if thread is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "No complaints found"},
        )
    return ComplaintView(**complaint_service.thread_payload(thread))


@router.post(
    "/{student_id:path}/messages",
    status_code=201,
    response_model=MessageRead,
    dependencies=[Depends(require_csrf_header)],
)
@limiter.limit(submit_limit)
def continue_conversation(
    request: Request,
    student_id: str,
    data: MessageCreateRequest,
    db: Session = Depends(get_db),
    actor_role: ActorRole = Depends(get_actor_role),
):
    """Reply on the thread as the current actor (student or admin)."""
    try:
        message = complaint_service.continue_conversation(
            db,
            student_id,
            text=data.text,
            actor_role=actor_role,
        )
    except InvalidKey as e:
        raise _error(422, e)
    except ComplaintNotFound as e:
        raise _error(404, e)
    except ThreadClosed as e:
        raise _error(409, e)
    except EmptyMessage as e:
        raise _error(422, e)
    except StoreUnavailable as e:
        return _store_error(request, student_id, e)
    return MessageRead(**complaint_service.message_payload(message))


@router.patch(
    "/{student_id:path}/status",
    response_model=ComplaintSummary,
    dependencies=[Depends(require_csrf_header)],
)
def change_status(
    request: Request,
    student_id: str,
    data: ComplaintStatusRequest,
    db: Session = Depends(get_db),
    _admin: ActorRole = Depends(require_admin),
):
    """Set the complaint status (admin only)."""
    try:
        complaint = complaint_service.change_status(db, student_id, data.status)
    except (InvalidKey, InvalidStatus) as e:
        raise _error(422, e)
    except ComplaintNotFound as e:
        raise _error(404, e)
    except StoreUnavailable as e:
        return _store_error(request, student_id, e)
    return ComplaintSummary(**complaint_service.complaint_payload(complaint))
