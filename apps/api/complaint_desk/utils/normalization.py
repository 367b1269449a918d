"""Input normalization for complaint intake."""

import re
from typing import Optional

from complaint_desk.services.complaint_errors import InvalidKey

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def resolve_key(raw_id: Optional[str]) -> str:
    """
    Normalize a human-entered student identifier into the complaint key.

    Args:
        raw_id: Student ID as typed (may carry surrounding whitespace)

    Returns:
        Trimmed identifier

    Raises:
        InvalidKey: If nothing is left after trimming
    """
    key = (raw_id or "").strip()
    if not key:
        raise InvalidKey("Student ID is required")
    return key


def normalize_text(value: Optional[str]) -> str:
    """Strip surrounding whitespace; None becomes an empty string."""
    return (value or "").strip()


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Trim an email address.

    Case is kept as entered; the address is only used for contact.
    """
    if not email:
        return None
    return email.strip() or None


def is_valid_email(email: Optional[str]) -> bool:
    """Return True for a single well-formed address."""
    return bool(email) and EMAIL_RE.match(email) is not None
