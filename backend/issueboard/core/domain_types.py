"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - IssueId is a positive int, allocated monotonically, never reused
    - IssueStatus values are exactly the strings the board UI displays
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (snapshot + wire format)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

IssueId = NewType("IssueId", int)
CommentId = NewType("CommentId", int)       # epoch milliseconds at creation
ObserverId = NewType("ObserverId", str)


# ─── Enums ───────────────────────────────────────────────────────

class IssueStatus(str, Enum):
    """Issue lifecycle states. New issues always start OPEN."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"

    @classmethod
    def parse(cls, value: str) -> "IssueStatus | None":
        """Return the matching status or None for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return None


class ServerEventType(str, Enum):
    """Server → client event discriminators."""
    INIT = "init"
    ISSUE_CREATED = "issue_created"
    ISSUE_UPDATED = "issue_updated"
    COMMENT_ADDED = "comment_added"
    ERROR = "error"


class ClientEventType(str, Enum):
    """Client → server event discriminators."""
    CREATE_ISSUE = "create_issue"
    UPDATE_ISSUE = "update_issue"
    ADD_COMMENT = "add_comment"


ANONYMOUS = "Anonymous"
UNKNOWN_ACTOR = "Unknown"
