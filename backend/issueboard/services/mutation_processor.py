"""Mutation Processor — single owner of the Store; applies, persists, broadcasts, records.

Invariants:
    - All store mutations and observer connects run under one asyncio.Lock:
      no two reload-mutate-write sequences interleave, so no update is lost
    - A mutation works on a copy; the owned store is replaced only after the
      snapshot write succeeded (PersistenceError aborts with nothing broadcast)
    - Domain errors (validation, not found) leave the store and snapshot untouched
    - Order after success: persist → broadcast → submit history record
    - History submission is fire-and-forget; its failure never reaches the caller

Design Decisions:
    - reload_before_mutate re-reads the snapshot inside the lock so out-of-band
      edits to the file are honored; a missing or corrupt file at that point
      falls back to the in-memory store, which is then rewritten; a reload
      never lowers next_id below the highest id already allocated
    - connect() reloads and sends init under the same lock: a new observer
      can neither miss a delta nor receive one that predates its snapshot
    - Clock injected (callable returning aware datetime) for deterministic tests
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, TypeVar

from issueboard.core import mutations
from issueboard.core.domain_types import ObserverId
from issueboard.core.events import (
    comment_added_event, issue_created_event, issue_updated_event,
)
from issueboard.core.history_messages import (
    comment_added_message, issue_created_message, issue_updated_message,
)
from issueboard.core.protocols import HistoryRecorder, Observer
from issueboard.core.records import Comment, Issue, Store
from issueboard.infrastructure.snapshot_file import SnapshotFile
from issueboard.services.broadcast_hub import BroadcastHub

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MutationProcessor:
    """Serializes create/update/comment mutations against the authoritative store."""

    def __init__(
        self,
        snapshot: SnapshotFile,
        hub: BroadcastHub,
        recorder: HistoryRecorder,
        clock: Callable[[], datetime] = _utc_now,
        reload_before_mutate: bool = True,
    ):
        self.snapshot = snapshot
        self.hub = hub
        self.recorder = recorder
        self.clock = clock
        self.reload_before_mutate = reload_before_mutate
        self._store: Store | None = None
        self._lock = asyncio.Lock()

    # -- State access ----------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self._store is not None

    @property
    def store(self) -> Store:
        if self._store is None:
            raise RuntimeError("Store not loaded")
        return self._store

    async def load(self) -> Store:
        """Load the durable snapshot (or initialize it) as the owned store."""
        async with self._lock:
            self._store = await self.snapshot.load()
            logger.info(
                f"Store loaded: {len(self._store.issues)} issue(s), "
                f"nextId={self._store.next_id}",
            )
            return self._store

    async def current_snapshot(self) -> dict:
        """Current store document, consistent with every completed mutation."""
        async with self._lock:
            return self.store.to_dict()

    async def get_issue(self, issue_id: int) -> dict:
        """One issue document; raises IssueNotFoundError for an unknown id."""
        async with self._lock:
            return mutations.find_issue(self.store, issue_id).to_dict()

    # -- Observers -------------------------------------------------------------

    async def connect(self, observer: Observer) -> None:
        """Send init to a new observer and register it for broadcasts.

        With reload_before_mutate the snapshot is re-read first, so init
        carries out-of-band edits without waiting for the next mutation.
        """
        async with self._lock:
            if self.reload_before_mutate and self._store is not None:
                self._store = await self._base_store()
            await self.hub.on_connect(observer, self.store)

    def disconnect(self, observer_id: ObserverId) -> None:
        self.hub.unregister(observer_id)

    # -- Mutations -------------------------------------------------------------

    async def create_issue(
        self,
        title: str | None,
        description: str | None = None,
        created_by: str | None = None,
    ) -> Issue:
        now = self.clock()
        issue = await self._apply(
            lambda store: mutations.create_issue(
                store, title, description, created_by, now,
            ),
            issue_created_event,
            issue_created_message,
        )
        logger.info(
            f"Issue #{issue.id} created",
            extra={"issue_id": issue.id, "event_type": "issue_created"},
        )
        return issue

    async def update_issue(
        self, issue_id: int, fields: dict, updated_by: str | None = None,
    ) -> Issue:
        now = self.clock()
        issue = await self._apply(
            lambda store: mutations.update_issue(store, issue_id, fields, now),
            issue_updated_event,
            lambda updated: issue_updated_message(updated.id, fields, updated_by),
        )
        logger.info(
            f"Issue #{issue.id} updated",
            extra={"issue_id": issue.id, "event_type": "issue_updated"},
        )
        return issue

    async def add_comment(
        self, issue_id: int, author: str | None, text: str | None,
    ) -> Comment:
        now = self.clock()
        comment = await self._apply(
            lambda store: mutations.add_comment(store, issue_id, author, text, now),
            lambda added: comment_added_event(issue_id, added),
            lambda added: comment_added_message(issue_id, added),
        )
        logger.info(
            f"Comment added to issue #{issue_id}",
            extra={"issue_id": issue_id, "event_type": "comment_added"},
        )
        return comment

    async def _apply(
        self,
        mutate: Callable[[Store], T],
        to_event: Callable[[T], dict],
        to_message: Callable[[T], str],
    ) -> T:
        async with self._lock:
            working = (await self._base_store()).copy()
            result = mutate(working)
            await self.snapshot.write(working)
            self._store = working
            await self.hub.broadcast(to_event(result))
            self._submit_history(to_message(result))
            return result

    def _submit_history(self, description: str) -> None:
        try:
            self.recorder.submit(description)
        except Exception:
            logger.exception("History submission failed", extra={"error_code": "HISTORY_RECORD_ERROR"})

    async def _base_store(self) -> Store:
        """Store a mutation or connect starts from (the reloaded file when enabled).

        A reloaded store never lowers next_id below the one already handed out,
        so an issue removed from the file cannot have its id reused.
        """
        if self.reload_before_mutate:
            reloaded = await self.snapshot.read()
            if reloaded is not None:
                if self._store is not None:
                    reloaded.next_id = max(reloaded.next_id, self._store.next_id)
                return reloaded
            if self._store is not None:
                logger.warning("Snapshot missing or corrupt, mutating in-memory store")
                return self._store
            return Store()
        return self.store
