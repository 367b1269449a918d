"""Complaint desk enums."""

from enum import Enum


class ComplaintStatus(str, Enum):
    """Complaint lifecycle status.

    Transitions beyond creation are an admin capability; the core only
    reads the status to decide whether the thread accepts messages.
    """

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class ActorRole(str, Enum):
    """Who wrote a message."""

    STUDENT = "student"
    ADMIN = "admin"


DEFAULT_COMPLAINT_STATUS = ComplaintStatus.OPEN

# Statuses that reject new messages
CLOSED_THREAD_STATUSES = frozenset({ComplaintStatus.CLOSED})
