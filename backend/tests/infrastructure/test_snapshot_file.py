"""Snapshot File — tests for tolerant load and atomic write.

Invariants:
    - Missing snapshot → empty store, persisted immediately
    - Corrupt snapshot → quarantined copy + empty store (never raises)
    - write() leaves no temp files and surfaces OSError as PersistenceError
"""

import json

import pytest

from issueboard.core.errors import PersistenceError
from issueboard.core.records import Store
from issueboard.infrastructure.snapshot_file import SnapshotFile


async def test_load_missing_initializes_and_persists(snapshot, snapshot_path):
    store = await snapshot.load()

    assert store.to_dict() == {"nextId": 1, "issues": []}
    assert json.loads(snapshot_path.read_text()) == {"nextId": 1, "issues": []}


async def test_write_then_load_reads_back(snapshot):
    store = Store()
    store.allocate_id()
    await snapshot.write(store)

    loaded = await snapshot.load()
    assert loaded.next_id == 2


async def test_write_is_pretty_printed_json(snapshot, snapshot_path):
    await snapshot.write(Store())
    assert snapshot_path.read_text() == '{\n  "nextId": 1,\n  "issues": []\n}'


async def test_corrupt_snapshot_is_quarantined_and_reinitialized(
    snapshot, snapshot_path, tmp_path,
):
    snapshot_path.write_text("{ not json", encoding="utf-8")

    store = await snapshot.load()

    assert store.to_dict() == {"nextId": 1, "issues": []}
    quarantined = list(tmp_path.glob("issues.json.corrupt-*"))
    assert len(quarantined) == 1
    assert quarantined[0].read_text() == "{ not json"


async def test_wrong_shape_counts_as_corrupt(snapshot, snapshot_path):
    snapshot_path.write_text('{"nextId": 1, "issues": "nope"}')
    assert await snapshot.read() is None


async def test_write_leaves_no_temp_files(snapshot, tmp_path):
    for _ in range(3):
        await snapshot.write(Store())
    assert sorted(p.name for p in tmp_path.iterdir()) == ["issues.json"]


async def test_write_failure_raises_persistence_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    snapshot = SnapshotFile(blocker / "issues.json")

    with pytest.raises(PersistenceError) as exc:
        await snapshot.write(Store())
    assert exc.value.operation == "write"
