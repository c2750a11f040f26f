"""Mutations — create, update and comment rules applied to a Store.

Invariants:
    - Each function either fully applies its change or raises before touching the store
    - create_issue: title required (non-blank), status starts OPEN, comments empty
    - update_issue: only title/description/status are mergeable; absent keys untouched
    - add_comment: new comment is always appended last; author defaults to Anonymous
    - Every successful mutation sets the issue's updated_at to `now`

Design Decisions:
    - `now` is an argument: the shell supplies the clock, tests pin it
    - Validation happens here as well as at the schema boundary so any caller
      of the core (not only the WebSocket route) gets the same guarantees
"""

from datetime import datetime

from issueboard.core.domain_types import ANONYMOUS, IssueStatus
from issueboard.core.errors import (
    ErrorContext, IssueNotFoundError, IssueValidationError,
)
from issueboard.core.records import (
    Comment, Issue, Store, epoch_millis, iso_timestamp,
)

UPDATABLE_FIELDS: frozenset[str] = frozenset({"title", "description", "status"})


def find_issue(store: Store, issue_id: object) -> Issue:
    """Return the issue or raise IssueNotFoundError."""
    if isinstance(issue_id, bool) or not isinstance(issue_id, int):
        raise IssueNotFoundError(issue_id)
    issue = store.find(issue_id)
    if issue is None:
        raise IssueNotFoundError(issue_id)
    return issue


def create_issue(
    store: Store,
    title: str | None,
    description: str | None,
    created_by: str | None,
    now: datetime,
) -> Issue:
    """Append a new OPEN issue to the store and return it."""
    if not isinstance(title, str) or not title.strip():
        raise IssueValidationError("Title is required", field="title")
    if description is not None and not isinstance(description, str):
        raise IssueValidationError("Description must be text", field="description")

    stamp = iso_timestamp(now)
    issue = Issue(
        id=store.allocate_id(),
        title=title,
        description=description or "",
        status=IssueStatus.OPEN,
        created_by=created_by or ANONYMOUS,
        created_at=stamp,
        updated_at=stamp,
    )
    store.issues.append(issue)
    return issue


def update_issue(
    store: Store, issue_id: object, fields: dict, now: datetime,
) -> Issue:
    """Merge the supplied fields into an existing issue and return it."""
    issue = find_issue(store, issue_id)
    changes = validate_update_fields(fields, issue.id)

    if "title" in changes:
        issue.title = changes["title"]
    if "description" in changes:
        issue.description = changes["description"]
    if "status" in changes:
        issue.status = changes["status"]
    issue.updated_at = iso_timestamp(now)
    return issue


def validate_update_fields(fields: object, issue_id: int | None = None) -> dict:
    """Check an update_issue `fields` mapping. Returns typed values, never mutates."""
    ctx = ErrorContext(issue_id=issue_id)
    if not isinstance(fields, dict):
        raise IssueValidationError("fields must be an object", "fields", ctx)

    unknown = sorted(set(fields) - UPDATABLE_FIELDS)
    if unknown:
        raise IssueValidationError(
            f"Fields cannot be updated: {', '.join(unknown)}", "fields", ctx,
        )

    changes: dict = {}
    if "title" in fields:
        title = fields["title"]
        if not isinstance(title, str) or not title.strip():
            raise IssueValidationError("Title is required", "title", ctx)
        changes["title"] = title
    if "description" in fields:
        description = fields["description"]
        if description is None:
            description = ""
        if not isinstance(description, str):
            raise IssueValidationError("Description must be text", "description", ctx)
        changes["description"] = description
    if "status" in fields:
        raw = fields["status"]
        status = IssueStatus.parse(raw) if isinstance(raw, str) else None
        if status is None:
            allowed = ", ".join(s.value for s in IssueStatus)
            raise IssueValidationError(
                f"Invalid status {raw!r} (expected one of: {allowed})", "status", ctx,
            )
        changes["status"] = status
    return changes


def add_comment(
    store: Store,
    issue_id: object,
    author: str | None,
    text: str | None,
    now: datetime,
) -> Comment:
    """Append a comment to an existing issue and return only the comment."""
    issue = find_issue(store, issue_id)
    if text is not None and not isinstance(text, str):
        raise IssueValidationError(
            "Comment text must be text", "text", ErrorContext(issue_id=issue.id),
        )

    comment_id = epoch_millis(now)
    if issue.comments and comment_id <= issue.comments[-1].id:
        comment_id = issue.comments[-1].id + 1

    comment = Comment(
        id=comment_id,
        author=author or ANONYMOUS,
        text=text or "",
        created_at=iso_timestamp(now),
    )
    issue.comments.append(comment)
    issue.updated_at = comment.created_at
    return comment
