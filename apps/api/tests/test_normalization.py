"""Tests for complaint key resolution and intake normalization."""

import pytest

from complaint_desk.services.complaint_errors import InvalidKey
from complaint_desk.utils.normalization import (
    is_valid_email,
    normalize_email,
    normalize_text,
    resolve_key,
)


def test_resolve_key_trims_surrounding_whitespace():
    assert resolve_key(" 2024001 ") == "2024001"
    assert resolve_key("\t2024001\n") == "2024001"


def test_resolve_key_keeps_inner_characters():
    assert resolve_key("  CSE 2024-001 ") == "CSE 2024-001"


@pytest.mark.parametrize("raw", ["", "   ", "\n\t", None])
def test_resolve_key_rejects_blank(raw):
    with pytest.raises(InvalidKey):
        resolve_key(raw)


def test_normalize_text_handles_none():
    assert normalize_text(None) == ""
    assert normalize_text("  hello ") == "hello"


def test_normalize_email_trims_and_drops_blank():
    assert normalize_email("  a@b.com ") == "a@b.com"
    assert normalize_email("   ") is None
    assert normalize_email(None) is None


@pytest.mark.parametrize(
    "email,expected",
    [
        ("a@b.com", True),
        ("first.last@dept.university.edu", True),
        ("no-at-sign.com", False),
        ("a@b", False),
        ("a b@c.com", False),
        ("a@@b.com", False),
        ("", False),
    ],
)
def test_is_valid_email(email, expected):
    assert is_valid_email(email) is expected
