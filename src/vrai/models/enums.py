"""
vrai/models/enums.py — Enumerations of the Vrai domain.

    • RequestStatus — lifecycle of an authentication request
    • TicketStatus — lifecycle of a support message / problem report
    • SubmissionStatus — draft container state
    • RequestFilter — buckets of the user's request list
"""

from enum import Enum


class RequestStatus(str, Enum):
    """Status of an authentication request (stored verbatim in the table)."""
    PENDING_REVIEW = "Pending Review"
    ACTION_REQUIRED = "Action Required"
    AUTHENTICATED = "Authenticated"
    REJECTED = "Rejected"


class TicketStatus(str, Enum):
    """Status of a support message or problem report."""
    PENDING = "pending"
    RESOLVED = "resolved"


class SubmissionStatus(str, Enum):
    """State of the draft that collects wizard uploads."""
    DRAFT = "draft"
    COMPLETED = "completed"


class RequestFilter(str, Enum):
    """Request list buckets: in-progress awaits a decision, completed is terminal."""
    ALL = "all"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
