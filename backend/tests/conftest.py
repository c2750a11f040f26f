"""Root conftest — shared fixtures: isolated snapshot, fake observers, fake recorder, pinned clock.

Invariants:
    - Every test gets its own snapshot file under tmp_path (no shared state)
    - Version history never touches a real repository unless a test builds one
    - The clock advances 1ms per call so timestamps and comment ids are deterministic

Design Decisions:
    - Fakes over mocks: FakeObserver/FakeRecorder record what they received,
      assertions read plain lists
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Keep the import-time app from reading a developer's .env history settings
os.environ.setdefault("HISTORY_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from issueboard.infrastructure.snapshot_file import SnapshotFile  # noqa: E402
from issueboard.services.board import Board  # noqa: E402


class FakeObserver:
    """Observer that records every event; can be closed or made to fail."""

    def __init__(self, observer_id: str = "obs-1"):
        self.observer_id = observer_id
        self.events: list[dict] = []
        self.open = True
        self.fail = False

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_event(self, event: dict) -> None:
        if self.fail:
            raise ConnectionError("channel broken")
        self.events.append(event)

    def of_type(self, event_type: str) -> list[dict]:
        return [e for e in self.events if e["type"] == event_type]


class FakeRecorder:
    """HistoryRecorder that keeps submissions in memory."""

    def __init__(self):
        self.records: list[str] = []
        self.started = False
        self.stopped = False
        self.raise_on_submit = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    def submit(self, description: str) -> None:
        if self.raise_on_submit:
            raise RuntimeError("history backend exploded")
        self.records.append(description)

    def status(self) -> dict:
        return {"enabled": True, "pending": 0, "records": len(self.records)}


class StepClock:
    """Returns a UTC instant that advances by one millisecond per call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + timedelta(milliseconds=1)
        return now


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "issues.json"


@pytest.fixture
def snapshot(snapshot_path):
    return SnapshotFile(snapshot_path)


@pytest.fixture
def recorder():
    return FakeRecorder()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def make_observer():
    counter = iter(range(1, 1000))

    def _make() -> FakeObserver:
        return FakeObserver(f"obs-{next(counter)}")

    return _make


@pytest.fixture
def unstarted_board(snapshot, recorder, clock):
    """Board wired with fakes but not started (for sync TestClient lifespans)."""
    return Board.assemble(snapshot, recorder, clock=clock)


@pytest.fixture
async def board(unstarted_board):
    await unstarted_board.start()
    yield unstarted_board
    await unstarted_board.stop()


@pytest.fixture
def processor(board):
    return board.processor
