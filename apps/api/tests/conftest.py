"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite database per test
- Admin session token minting
- HTTPX AsyncClient for student (anonymous) and admin callers
"""
import os
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["TESTING"] = "1"
os.environ["COMPLAINT_DEPARTMENTS"] = ""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from complaint_desk.main import app
from complaint_desk.core.deps import get_db
from complaint_desk.core.constants import COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE
from complaint_desk.core.security import create_session_token
from complaint_desk.db.base import Base
from complaint_desk.db.enums import ActorRole
import complaint_desk.db.models  # noqa: F401


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Isolated in-memory database shared across threads for one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Admin session context."""
    subject: str
    token: str
    cookie_name: str = COOKIE_NAME


@pytest.fixture(scope="function")
def admin_auth() -> TestAuth:
    subject = "registrar@university.test"
    return TestAuth(
        subject=subject,
        token=create_session_token(subject=subject, role=ActorRole.ADMIN.value),
    )


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Anonymous AsyncClient; acts as a student. Sends the CSRF header.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={CSRF_HEADER: CSRF_HEADER_VALUE},
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def admin_client(
    db: Session,
    admin_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient carrying an admin session cookie and the CSRF header.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={admin_auth.cookie_name: admin_auth.token},
        headers={CSRF_HEADER: CSRF_HEADER_VALUE},
    ) as c:
        yield c

    app.dependency_overrides.clear()

