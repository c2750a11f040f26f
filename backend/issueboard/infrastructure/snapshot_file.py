"""Snapshot File — durable JSON document holding the full Store.

Invariants:
    - write() replaces the file atomically (temp file + fsync + os.replace):
      a reader never observes a truncated document
    - load() never raises for a missing, unreadable or corrupt document; it
      reinitializes an empty store {nextId: 1, issues: []} and persists it
    - A corrupt document is moved aside (<name>.corrupt-<stamp>) before reinit
    - Every write failure surfaces as PersistenceError

Design Decisions:
    - Blocking file IO runs via asyncio.to_thread: the event loop keeps
      serving broadcasts while the disk is busy
    - Quarantine over delete on corruption: availability wins, but the bad
      bytes stay on disk for an operator to inspect
"""

import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from issueboard.core.errors import PersistenceError
from issueboard.core.records import Store

logger = logging.getLogger(__name__)


class SnapshotFile:
    """Reads and atomically rewrites the snapshot document at `path`."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    async def load(self) -> Store:
        """Return the latest durable store, reinitializing when absent or corrupt."""
        store = await self.read()
        if store is not None:
            return store
        store = Store()
        await self.write(store)
        logger.info("Initialized empty snapshot", extra={"path": str(self.path)})
        return store

    async def read(self) -> Store | None:
        """Return the stored document, or None when missing, unreadable or corrupt."""
        return await asyncio.to_thread(self._read)

    async def write(self, store: Store) -> None:
        """Serialize the whole store and atomically replace the document."""
        payload = json.dumps(store.to_dict(), indent=2, ensure_ascii=False)
        try:
            await asyncio.to_thread(self._write_atomic, payload)
        except OSError as e:
            logger.error(
                f"Snapshot write failed: {e}",
                extra={"path": str(self.path), "error_code": "PERSISTENCE_ERROR"},
            )
            raise PersistenceError(str(e), "write") from e

    def exists(self) -> bool:
        return self.path.is_file()

    # -- Blocking helpers (run in a worker thread) -----------------------------

    def _read(self) -> Store | None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(
                f"Snapshot unreadable, reinitializing: {e}",
                extra={"path": str(self.path)},
            )
            return None

        try:
            return Store.from_dict(json.loads(text))
        except (ValueError, TypeError) as e:
            # json.JSONDecodeError is a ValueError
            quarantined = self._quarantine()
            logger.error(
                f"Snapshot corrupt, reinitializing empty store: {e}",
                extra={"path": str(quarantined or self.path)},
            )
            return None

    def _quarantine(self) -> Path | None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, target)
        except OSError as e:
            logger.warning(f"Could not move corrupt snapshot aside: {e}")
            return None
        return target

    def _write_atomic(self, payload: str) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=directory,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
