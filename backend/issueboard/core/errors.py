"""Error Hierarchy — typed, categorized exceptions for all issue board failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) leave the store unmodified
    - to_response() produces REST envelope; to_ws_event() produces WebSocket envelope
    - HistoryRecordError never reaches an observer (logged by the recorder only)

Design Decisions:
    - Single hierarchy with IssueBoardError base: WebSocket dispatch and FastAPI
      handlers catch one type and render a uniform error shape
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    PERSISTENCE = "persistence"
    HISTORY = "history"
    PROTOCOL = "protocol"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    issue_id: int | None = None
    event_type: str | None = None
    debug_info: dict[str, Any] | None = None


class IssueBoardError(Exception):
    """Base exception for all issue board errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "issue_id": self.context.issue_id,
                    "event_type": self.context.event_type,
                },
            }
        }

    def to_ws_event(self) -> dict:
        """Convert to the `error` event sent to the requesting observer only."""
        return {"type": "error", "message": self.message, "code": self.code}


# ─── Domain Errors (400-level) ──────────────────────────────────

class IssueValidationError(IssueBoardError):
    """Mutation input failed validation (e.g. empty title, unknown status)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class IssueNotFoundError(IssueBoardError):
    """Referenced issue id does not exist in the store."""
    def __init__(self, issue_id: object, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        if isinstance(issue_id, int):
            ctx.issue_id = issue_id
        super().__init__(
            "Issue not found", "ISSUE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.issue_id = issue_id


class ProtocolError(IssueBoardError):
    """Client message is not valid JSON or names an unknown event type."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PROTOCOL_ERROR", ErrorCategory.PROTOCOL,
            ErrorSeverity.WARNING, context, 400,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class PersistenceError(IssueBoardError):
    """Durable snapshot write failed; the mutation is aborted."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Snapshot {operation} failed: {message}",
            "PERSISTENCE_ERROR", ErrorCategory.PERSISTENCE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class HistoryRecordError(IssueBoardError):
    """Version-history commit or push failed. Always non-fatal."""
    def __init__(self, message: str, command: str, context: ErrorContext | None = None):
        super().__init__(
            f"git {command} failed: {message}",
            "HISTORY_RECORD_ERROR", ErrorCategory.HISTORY,
            ErrorSeverity.WARNING, context, 500,
        )
        self.command = command
