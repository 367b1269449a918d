"""FastAPI dependencies for database access and actor-role resolution."""

from typing import Generator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from complaint_desk.core.constants import COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE
from complaint_desk.core.security import decode_session_token
from complaint_desk.db.enums import ActorRole
from complaint_desk.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_actor_role(request: Request) -> ActorRole:
    """
    Resolve who is acting on this request.

    Students are anonymous (the student ID is the ticket), so a request
    without a session cookie acts as a student. A present cookie must be a
    valid admin session; a bad one is rejected instead of downgraded.

    Raises:
        HTTPException 401: Invalid or expired session
        HTTPException 403: Session carries an unknown role
    """
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        return ActorRole.STUDENT

    try:
        payload = decode_session_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid session")

    role = payload.get("role")
    if role != ActorRole.ADMIN.value:
        raise HTTPException(status_code=403, detail=f"Unknown role '{role}'")
    return ActorRole.ADMIN


def require_admin(role: ActorRole = Depends(get_actor_role)) -> ActorRole:
    """
    Dependency for admin-only endpoints.

    Raises:
        HTTPException 401: No admin session
    """
    if role != ActorRole.ADMIN:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return role


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on mutations.

    Apply to state-changing endpoints (POST, PATCH, DELETE).

    Raises:
        HTTPException 403: Missing or invalid CSRF header
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'"
        )
