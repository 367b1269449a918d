"""Async HTTP client for the complaint desk API with optimistic local echo."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from complaint_desk.core.constants import COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE

logger = logging.getLogger(__name__)


def _complaint_path(key: str, suffix: str = "") -> str:
    # Keys are free-form; a "/" in one must not split the path
    return f"/complaints/{quote(key, safe='')}{suffix}"


class ComplaintDeskError(Exception):
    """Non-success response from the complaint desk API."""

    def __init__(self, status_code: int, code: str, message: str, errors: list | None = None):
        self.status_code = status_code
        self.code = code
        self.errors = errors or []
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.status_code == 503


@dataclass
class _CachedThread:
    view: dict[str, Any] | None = None
    pending: dict[int, dict[str, Any]] = field(default_factory=dict)


class ThreadCache:
    """
    Per-client read-through cache of complaint threads.

    Sent messages show up at once as speculative entries (``pending=True``).
    A confirmed append invalidates the cached thread so the next read goes
    back to the server, whose ordering is authoritative.
    """

    def __init__(self) -> None:
        self._threads: dict[str, _CachedThread] = {}
        self._tokens = itertools.count(1)

    def get(self, key: str) -> dict[str, Any] | None:
        """Cached view with speculative entries appended, or None on a miss."""
        entry = self._threads.get(key)
        if entry is None or entry.view is None:
            return None
        view = dict(entry.view)
        view["messages"] = list(entry.view.get("messages", [])) + list(entry.pending.values())
        return view

    def put(self, key: str, view: dict[str, Any]) -> None:
        self._threads.setdefault(key, _CachedThread()).view = view

    def add_pending(self, key: str, text: str, sent_by: str) -> int:
        token = next(self._tokens)
        self._threads.setdefault(key, _CachedThread()).pending[token] = {
            "id": None,
            "text": text,
            "sentBy": sent_by,
            "isAdmin": sent_by == "admin",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "pending": True,
        }
        return token

    def drop_pending(self, key: str, token: int) -> None:
        entry = self._threads.get(key)
        if entry is not None:
            entry.pending.pop(token, None)

    def invalidate(self, key: str) -> None:
        entry = self._threads.get(key)
        if entry is not None:
            entry.view = None

    def pending_count(self, key: str) -> int:
        entry = self._threads.get(key)
        return len(entry.pending) if entry else 0


class ComplaintDeskClient:
    """
    Caller for the /complaints API.

    Usage:
        async with ComplaintDeskClient("http://localhost:8000") as desk:
            key = await desk.submit(student_id="2024001", ...)
            view = await desk.track(key)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        admin_token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        cookies = {COOKIE_NAME: admin_token} if admin_token else None
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            cookies=cookies,
            headers={CSRF_HEADER: CSRF_HEADER_VALUE},
        )
        self.role = "admin" if admin_token else "student"
        self.cache = ThreadCache()

    async def __aenter__(self) -> "ComplaintDeskClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = None
        if isinstance(detail, dict):
            raise ComplaintDeskError(
                response.status_code,
                detail.get("code", "error"),
                detail.get("message", response.reason_phrase),
                detail.get("errors"),
            )
        raise ComplaintDeskError(response.status_code, "error", str(detail or response.reason_phrase))

    async def submit(
        self,
        *,
        student_id: str,
        title: str,
        email: str,
        department: str,
        description: str,
    ) -> str:
        """Submit a complaint; returns the tracking key."""
        response = await self._http.post(
            "/complaints",
            json={
                "studentId": student_id,
                "title": title,
                "email": email,
                "department": department,
                "description": description,
            },
        )
        self._raise_for_error(response)
        key = response.json()["studentId"]
        self.cache.invalidate(key)
        return key

    async def track(self, student_id: str, *, refresh: bool = False) -> dict[str, Any] | None:
        """Complaint with its thread, or None when the student has no complaint."""
        key = student_id.strip()
        if not refresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        response = await self._http.get(_complaint_path(key))
        try:
            self._raise_for_error(response)
        except ComplaintDeskError as e:
            if e.status_code == 404 and e.code == "not_found":
                self.cache.invalidate(key)
                return None
            raise
        self.cache.put(key, response.json())
        return self.cache.get(key)

    async def send_message(self, student_id: str, text: str) -> dict[str, Any]:
        """
        Post a reply with local echo.

        The speculative entry is visible through ``track`` while the request
        is in flight and is dropped once the server answers either way.
        """
        key = student_id.strip()
        token = self.cache.add_pending(key, text.strip(), self.role)
        try:
            response = await self._http.post(_complaint_path(key, "/messages"), json={"text": text})
            self._raise_for_error(response)
        except (ComplaintDeskError, httpx.HTTPError):
            logger.info("Reply not accepted; dropping local echo", extra={"complaint_key": key})
            raise
        else:
            self.cache.invalidate(key)
            return response.json()
        finally:
            self.cache.drop_pending(key, token)

    async def set_status(self, student_id: str, status: str) -> dict[str, Any]:
        """Admin status change; needs a client built with ``admin_token``."""
        key = student_id.strip()
        response = await self._http.patch(_complaint_path(key, "/status"), json={"status": status})
        self._raise_for_error(response)
        self.cache.invalidate(key)
        return response.json()

    async def departments(self) -> list[str]:
        """Departments the intake form accepts; empty means free text."""
        response = await self._http.get("/complaint-departments")
        self._raise_for_error(response)
        return response.json()["items"]
