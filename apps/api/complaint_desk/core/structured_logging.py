"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler once; later calls only adjust the level."""
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    logging.getLogger().setLevel(level.upper())


def build_log_context(
    *,
    complaint_key: str | None = None,
    actor_role: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict.

    Contact details (email, free text) never go into log context.
    """
    context: dict[str, Any] = {}
    if complaint_key:
        context["complaint_key"] = complaint_key
    if actor_role:
        context["actor_role"] = actor_role
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
