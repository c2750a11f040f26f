"""History Messages — human-readable commit summaries for each mutation kind.

Invariants:
    - One message per successful mutation, always prefixed with "Issue #<id>"
    - Pure string formatting, no IO
"""

import json

from issueboard.core.domain_types import UNKNOWN_ACTOR
from issueboard.core.records import Comment, Issue


def issue_created_message(issue: Issue) -> str:
    return f"Issue #{issue.id} created by {issue.created_by}: {issue.title}"


def issue_updated_message(
    issue_id: int, fields: dict, updated_by: str | None,
) -> str:
    summary = json.dumps(fields, separators=(",", ":"), ensure_ascii=False)
    return f"Issue #{issue_id} updated by {updated_by or UNKNOWN_ACTOR}: {summary}"


def comment_added_message(issue_id: int, comment: Comment) -> str:
    return f'Issue #{issue_id} commented by {comment.author}: "{comment.text}"'
