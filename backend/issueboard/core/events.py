"""Server Events — builders for every server → client event on the wire.

Invariants:
    - Every event is a JSON-safe dict with a `type` discriminator
    - issue_updated carries the full issue, comment_added only the new comment
"""

from issueboard.core.domain_types import ServerEventType
from issueboard.core.records import Comment, Issue, Store


def init_event(store: Store) -> dict:
    return {"type": ServerEventType.INIT.value, "data": store.to_dict()}


def issue_created_event(issue: Issue) -> dict:
    return {"type": ServerEventType.ISSUE_CREATED.value, "issue": issue.to_dict()}


def issue_updated_event(issue: Issue) -> dict:
    return {"type": ServerEventType.ISSUE_UPDATED.value, "issue": issue.to_dict()}


def comment_added_event(issue_id: int, comment: Comment) -> dict:
    return {
        "type": ServerEventType.COMMENT_ADDED.value,
        "issueId": issue_id,
        "comment": comment.to_dict(),
    }


def error_event(message: str, code: str | None = None) -> dict:
    event = {"type": ServerEventType.ERROR.value, "message": message}
    if code:
        event["code"] = code
    return event
