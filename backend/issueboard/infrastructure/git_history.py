"""Git History Recorder — best-effort commit (and optional push) of the snapshot per mutation.

Invariants:
    - submit() never blocks and never raises: the mutation response path only enqueues
    - Records are committed one at a time, in submission order, by a single worker task
    - Every git command is bounded by command_timeout seconds; on timeout git
      and everything it spawned (hooks, credential helpers) is killed
    - Commit failure skips the push; push failure is independent of commit success
    - Failures are logged and dropped (HistoryRecordError never leaves this module)
    - Push only happens when a remote was detected AND auto_push is enabled

Design Decisions:
    - Bounded asyncio.Queue: a slow or hung remote cannot accumulate unbounded
      work; overflow drops the record with a warning
    - git via asyncio subprocess over a Python git binding: the only operations
      needed are add/commit/push/symbolic-ref/remote
    - Branch/remote detected once at start(); detection failure keeps defaults
"""

import asyncio
import logging
import os
import signal
from pathlib import Path

from issueboard.core.errors import HistoryRecordError

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "master"
_POSIX = os.name == "posix"


class GitHistoryRecorder:
    """Commits the snapshot file to a local git repository on a background task."""

    def __init__(
        self,
        repo_dir: str | os.PathLike,
        snapshot_path: str | os.PathLike,
        remote: str = "origin",
        auto_push: bool = True,
        queue_size: int = 100,
        command_timeout: float = 30.0,
        shutdown_grace: float = 5.0,
    ):
        self.repo_dir = Path(repo_dir)
        self.snapshot_path = Path(snapshot_path).resolve()
        self.remote = remote
        self.auto_push = auto_push
        self.command_timeout = command_timeout
        self.shutdown_grace = shutdown_grace
        self.branch = DEFAULT_BRANCH
        self.has_remote = False
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._worker: asyncio.Task | None = None
        self._accepting = False
        self.committed = 0
        self.pushed = 0
        self.failed = 0
        self.dropped = 0

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Detect branch/remote and start the worker task."""
        await self.detect()
        self._accepting = True
        self._worker = asyncio.create_task(
            self._run_worker(), name="git-history-worker",
        )

    async def stop(self) -> None:
        """Drain pending records for at most shutdown_grace seconds, then cancel."""
        self._accepting = False
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), self.shutdown_grace)
        except asyncio.TimeoutError:
            logger.warning(
                f"History shutdown grace expired, {self._queue.qsize()} record(s) dropped",
            )
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def detect(self) -> None:
        """Detect current branch and whether any remote exists."""
        try:
            branch = (await self._git("symbolic-ref", "--short", "HEAD")).strip()
            self.branch = branch or DEFAULT_BRANCH
        except HistoryRecordError as e:
            logger.warning(f"Branch detect failed: {e.message}")
        try:
            remotes = (await self._git("remote")).split()
            self.has_remote = self.remote in remotes
        except HistoryRecordError:
            self.has_remote = False
        logger.info(
            f"Git: branch={self.branch} has_remote={self.has_remote} "
            f"auto_push={self.auto_push}",
        )

    # -- Submission ------------------------------------------------------------

    def submit(self, description: str) -> None:
        """Queue a history record. Returns immediately; drops when full or stopped."""
        if not self._accepting:
            self.dropped += 1
            logger.warning(f"History recorder not running, dropped: {description}")
            return
        try:
            self._queue.put_nowait(description)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"History queue full, dropped: {description}")

    async def record(self, description: str) -> bool:
        """Commit the snapshot with `description`, then push if configured.

        Returns True when the commit succeeded. Never raises HistoryRecordError.
        """
        path = str(self.snapshot_path)
        try:
            await self._git("add", "--", path)
            await self._git("commit", "-m", description)
        except HistoryRecordError as e:
            self.failed += 1
            logger.error(
                f"git commit failed: {e.message}",
                extra={"error_code": e.code, "command": e.command},
            )
            return False
        self.committed += 1
        logger.info(f"Committed: {description}")

        if not self.has_remote or not self.auto_push:
            return True
        try:
            await self._git("push", self.remote, self.branch)
        except HistoryRecordError as e:
            self.failed += 1
            logger.error(
                f"git push failed: {e.message}",
                extra={"error_code": e.code, "command": e.command},
            )
            return True
        self.pushed += 1
        logger.info(f"Pushed to {self.remote}/{self.branch}")
        return True

    def status(self) -> dict:
        return {
            "enabled": True,
            "running": self._worker is not None and not self._worker.done(),
            "branch": self.branch,
            "has_remote": self.has_remote,
            "auto_push": self.auto_push,
            "pending": self._queue.qsize(),
            "committed": self.committed,
            "pushed": self.pushed,
            "failed": self.failed,
            "dropped": self.dropped,
        }

    # -- Internals -------------------------------------------------------------

    async def _run_worker(self) -> None:
        while True:
            description = await self._queue.get()
            try:
                await self.record(description)
            except Exception:
                self.failed += 1
                logger.exception(f"Unexpected history failure for: {description}")
            finally:
                self._queue.task_done()

    async def _git(self, *args: str) -> str:
        """Run one git command in repo_dir; raise HistoryRecordError on any failure."""
        command = args[0]
        try:
            proc = await asyncio.create_subprocess_exec(
                "git", *args,
                cwd=self.repo_dir,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=_POSIX,
            )
        except OSError as e:
            raise HistoryRecordError(str(e), command) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), self.command_timeout,
            )
        except asyncio.TimeoutError:
            _kill_process_group(proc)
            await proc.wait()
            raise HistoryRecordError(
                f"timed out after {self.command_timeout}s", command,
            )

        if proc.returncode != 0:
            detail = (stderr or stdout).decode("utf-8", "replace").strip()
            raise HistoryRecordError(
                detail or f"exit status {proc.returncode}", command,
            )
        return stdout.decode("utf-8", "replace")


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """Kill git together with any hook or helper it spawned."""
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


class NullHistoryRecorder:
    """Recorder used when version history is disabled."""

    async def start(self) -> None:
        logger.info("Version history disabled")

    async def stop(self) -> None:
        return None

    def submit(self, description: str) -> None:
        logger.debug(f"History disabled, not recording: {description}")

    def status(self) -> dict:
        return {"enabled": False}
