"""Shared constants for the API and its clients."""

# Cookie and header names
COOKIE_NAME = "complaint_desk_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"
