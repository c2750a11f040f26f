"""Records — Issue, Comment and Store dataclasses plus snapshot (de)serialization.

Invariants:
    - Issue.id is immutable once assigned; Store.next_id only grows
    - Issue.status is always an IssueStatus member
    - Issue.comments is append-only (insertion order preserved)
    - to_dict() produces the exact wire/snapshot shape (camelCase keys)
    - Store.from_dict() raises ValueError on any shape violation (caller decides policy)

Design Decisions:
    - Timestamps kept as ISO-8601 strings: the snapshot and wire format carry
      them verbatim, so no datetime round-trip can alter them
    - from_dict raises a stale nextId to max(id) + 1; it cannot know about ids
      allocated to issues since removed from the file (the processor guards that)
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone

from issueboard.core.domain_types import ANONYMOUS, IssueId, IssueStatus


def iso_timestamp(moment: datetime) -> str:
    """Format as UTC ISO-8601 with millisecond precision and trailing Z."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@dataclass(frozen=True)
class Comment:
    """Immutable comment attached to an issue."""
    id: int
    author: str
    text: str
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "author": self.author,
            "text": self.text,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Comment":
        _require_mapping(data, "comment")
        return cls(
            id=_require_int(data.get("id"), "comment.id"),
            author=str(data.get("author") or ANONYMOUS),
            text=str(data.get("text", "")),
            created_at=str(data.get("createdAt", "")),
        )


@dataclass
class Issue:
    """Mutable issue record. Only the mutation functions change it."""
    id: IssueId
    title: str
    description: str
    status: IssueStatus
    created_by: str
    created_at: str
    updated_at: str
    comments: list[Comment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "createdBy": self.created_by,
            "comments": [c.to_dict() for c in self.comments],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Issue":
        _require_mapping(data, "issue")
        status = IssueStatus.parse(data.get("status", IssueStatus.OPEN.value))
        if status is None:
            raise ValueError(f"issue has unknown status {data.get('status')!r}")
        comments = data.get("comments", [])
        if not isinstance(comments, list):
            raise ValueError("issue.comments must be a list")
        return cls(
            id=IssueId(_require_int(data.get("id"), "issue.id")),
            title=str(data.get("title", "")),
            description=str(data.get("description") or ""),
            status=status,
            created_by=str(data.get("createdBy") or ANONYMOUS),
            created_at=str(data.get("createdAt", "")),
            updated_at=str(data.get("updatedAt", "")),
            comments=[Comment.from_dict(c) for c in comments],
        )


@dataclass
class Store:
    """The authoritative collection: id allocator plus issues in creation order."""
    next_id: int = 1
    issues: list[Issue] = field(default_factory=list)

    def allocate_id(self) -> IssueId:
        """Return the current counter value and advance it."""
        issue_id = IssueId(self.next_id)
        self.next_id += 1
        return issue_id

    def find(self, issue_id: int) -> Issue | None:
        for issue in self.issues:
            if issue.id == issue_id:
                return issue
        return None

    def copy(self) -> "Store":
        """Deep copy used as the working target of a mutation."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "nextId": self.next_id,
            "issues": [i.to_dict() for i in self.issues],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Store":
        _require_mapping(data, "store")
        raw_issues = data.get("issues")
        if not isinstance(raw_issues, list):
            raise ValueError("store.issues must be a list")
        issues = [Issue.from_dict(i) for i in raw_issues]
        ids = [i.id for i in issues]
        if len(set(ids)) != len(ids):
            raise ValueError("store contains duplicate issue ids")
        next_id = _require_int(data.get("nextId"), "store.nextId")
        next_id = max(next_id, max(ids, default=0) + 1)
        return cls(next_id=next_id, issues=issues)


# -- Shape helpers -------------------------------------------------------------

def _require_mapping(data: object, what: str) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")


def _require_int(value: object, what: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer, got {value!r}")
    return value
