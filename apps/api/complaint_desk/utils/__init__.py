"""Utility modules."""

from complaint_desk.utils.normalization import (
    is_valid_email,
    normalize_email,
    normalize_text,
    resolve_key,
)

__all__ = [
    "is_valid_email",
    "normalize_email",
    "normalize_text",
    "resolve_key",
]
