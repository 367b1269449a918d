"""Tests for the complaint parent-record store."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from complaint_desk.db.base import Base
from complaint_desk.db.enums import ActorRole, ComplaintStatus
from complaint_desk.db.models import Complaint
from complaint_desk.services import complaint_store
from complaint_desk.services.complaint_errors import ComplaintNotFound, StoreUnavailable


def _upsert(db, key="2024001", **overrides):
    fields = {
        "title": "Email issue",
        "email": "a@b.com",
        "department": "CSE",
        "description": "My alias email is wrong",
        "last_text_by": ActorRole.STUDENT,
    }
    fields.update(overrides)
    complaint_store.upsert_complaint(db, key, **fields)


def test_upsert_creates_open_record(db):
    _upsert(db)

    complaint = complaint_store.get_complaint(db, "2024001")
    assert complaint is not None
    assert complaint.status == ComplaintStatus.OPEN
    assert complaint.title == "Email issue"
    assert complaint.last_text_by == ActorRole.STUDENT
    assert complaint.opened_at == complaint.last_updated_at


def test_upsert_merges_without_clobbering_creation_fields(db):
    _upsert(db)
    first = complaint_store.get_complaint(db, "2024001")
    opened_at = first.opened_at
    first_updated = first.last_updated_at

    _upsert(db, title="Different title", email="other@b.com", last_text_by=ActorRole.ADMIN)

    merged = complaint_store.get_complaint(db, "2024001")
    assert merged.title == "Email issue"
    assert merged.email == "a@b.com"
    assert merged.opened_at == opened_at
    assert merged.last_updated_at >= first_updated
    assert merged.last_text_by == ActorRole.ADMIN


def test_repeated_upserts_converge_to_one_record(db):
    for _ in range(3):
        _upsert(db)
    _upsert(db, key="2024002")

    assert db.query(Complaint).filter(Complaint.student_id == "2024001").count() == 1
    assert db.query(Complaint).count() == 2


def test_upsert_does_not_reopen_closed_record(db):
    _upsert(db)
    complaint_store.set_status(db, "2024001", ComplaintStatus.CLOSED)

    _upsert(db)

    assert complaint_store.get_complaint(db, "2024001").status == ComplaintStatus.CLOSED


def test_get_complaint_absent_returns_none(db):
    assert complaint_store.get_complaint(db, "never-submitted") is None


def test_update_summary_touches_only_summary_fields(db):
    _upsert(db)
    before = complaint_store.get_complaint(db, "2024001")
    title = before.title
    opened_at = before.opened_at

    complaint_store.update_summary(db, "2024001", last_text_by=ActorRole.ADMIN)

    after = complaint_store.get_complaint(db, "2024001")
    assert after.last_text_by == ActorRole.ADMIN
    assert after.title == title
    assert after.opened_at == opened_at
    assert after.status == ComplaintStatus.OPEN


def test_update_summary_missing_record(db):
    with pytest.raises(ComplaintNotFound):
        complaint_store.update_summary(db, "ghost", last_text_by=ActorRole.STUDENT)


def test_set_status_accepts_any_enum_value(db):
    _upsert(db)

    for status in (
        ComplaintStatus.RESOLVED,
        ComplaintStatus.IN_PROGRESS,
        ComplaintStatus.CLOSED,
        ComplaintStatus.OPEN,
    ):
        complaint = complaint_store.set_status(db, "2024001", status)
        assert complaint.status == status


def test_set_status_missing_record(db):
    with pytest.raises(ComplaintNotFound):
        complaint_store.set_status(db, "ghost", ComplaintStatus.CLOSED)


def test_store_failure_is_reported_as_unavailable(db, monkeypatch):
    def broken_get(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "get", broken_get)

    with pytest.raises(StoreUnavailable):
        complaint_store.get_complaint(db, "2024001")


def test_upsert_failure_is_reported_as_unavailable(db, monkeypatch):
    def broken_execute(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("server closed the connection"))

    monkeypatch.setattr(db, "execute", broken_execute)

    with pytest.raises(StoreUnavailable):
        _upsert(db)


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file-backed database so each thread gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'complaints.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_concurrent_upserts_converge_to_one_record(file_session_factory):
    workers = 8
    barrier = threading.Barrier(workers)

    def submit(n: int) -> None:
        session = file_session_factory()
        try:
            barrier.wait()
            _upsert(
                session,
                title=f"Title {n}",
                last_text_by=ActorRole.ADMIN if n % 2 else ActorRole.STUDENT,
            )
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        list(pool.map(submit, range(workers)))

    session = file_session_factory()
    try:
        assert session.query(Complaint).count() == 1
        complaint = complaint_store.get_complaint(session, "2024001")
        assert complaint.title in {f"Title {n}" for n in range(workers)}
        assert complaint.status == ComplaintStatus.OPEN
    finally:
        session.close()
