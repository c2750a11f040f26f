"""Mutation Processor — tests for apply → persist → broadcast → record ordering and failure policy.

Invariants:
    - Successful mutations are durable, broadcast to every observer, then recorded
    - NotFound / Validation: store, snapshot and observers untouched
    - PersistenceError aborts: nothing broadcast, nothing recorded, store unchanged
    - Concurrent mutations never lose an update
    - History failure never affects the mutation result
"""

import asyncio
import json

import pytest

from issueboard.core.domain_types import IssueStatus
from issueboard.core.errors import (
    IssueNotFoundError, IssueValidationError, PersistenceError,
)


# -- Scenario from the board's UI flow -----------------------------------------

async def test_create_update_comment_scenario(processor, make_observer, recorder):
    alice, bob = make_observer(), make_observer()
    await processor.connect(alice)
    await processor.connect(bob)

    issue = await processor.create_issue("Bug A", "", "alice")
    assert issue.id == 1
    assert issue.status == IssueStatus.OPEN
    assert issue.comments == []

    updated = await processor.update_issue(1, {"status": "In Progress"}, "bob")
    assert updated.status == IssueStatus.IN_PROGRESS

    comment = await processor.add_comment(1, "carol", "looks fixed")
    assert (comment.author, comment.text) == ("carol", "looks fixed")

    for observer in (alice, bob):
        types = [e["type"] for e in observer.events]
        assert types == ["init", "issue_created", "issue_updated", "comment_added"]
        assert observer.events[1]["issue"]["id"] == 1
        assert observer.events[2]["issue"]["status"] == "In Progress"
        assert observer.events[3]["issueId"] == 1
        assert observer.events[3]["comment"]["author"] == "carol"

    assert len(processor.store.find(1).comments) == 1
    assert recorder.records == [
        "Issue #1 created by alice: Bug A",
        'Issue #1 updated by bob: {"status":"In Progress"}',
        'Issue #1 commented by carol: "looks fixed"',
    ]


async def test_mutation_is_persisted_before_broadcast(processor, make_observer, snapshot_path):
    """When an observer receives a delta, the snapshot already contains it."""
    seen_on_disk = []

    class _DiskCheckingObserver:
        observer_id = "disk-check"
        is_open = True

        async def send_event(self, event):
            if event["type"] == "issue_created":
                seen_on_disk.append(json.loads(snapshot_path.read_text()))

    await processor.connect(_DiskCheckingObserver())
    await processor.create_issue("Bug A")

    assert seen_on_disk[0]["issues"][0]["title"] == "Bug A"
    assert seen_on_disk[0]["nextId"] == 2


# -- Failures leave everything untouched ---------------------------------------

async def test_update_not_found_no_broadcast(processor, make_observer, recorder):
    observer = make_observer()
    await processor.connect(observer)

    with pytest.raises(IssueNotFoundError):
        await processor.update_issue(999, {"status": "Closed"}, "bob")

    assert observer.of_type("issue_updated") == []
    assert recorder.records == []


async def test_comment_not_found_store_unchanged(processor, snapshot_path):
    await processor.create_issue("Bug A")
    before = snapshot_path.read_text()

    with pytest.raises(IssueNotFoundError):
        await processor.add_comment(2, "carol", "hi")

    assert snapshot_path.read_text() == before


async def test_create_without_title_keeps_issue_count(processor, make_observer):
    observer = make_observer()
    await processor.connect(observer)
    await processor.create_issue("Bug A")

    with pytest.raises(IssueValidationError):
        await processor.create_issue("", "desc", "alice")

    assert len(processor.store.issues) == 1
    assert len(observer.of_type("issue_created")) == 1


async def test_invalid_status_rejected(processor):
    await processor.create_issue("Bug A")
    with pytest.raises(IssueValidationError):
        await processor.update_issue(1, {"status": "Done"})
    assert processor.store.find(1).status == IssueStatus.OPEN


async def test_persistence_failure_aborts(processor, make_observer, recorder, monkeypatch):
    observer = make_observer()
    await processor.connect(observer)
    await processor.create_issue("Bug A")

    async def _failing_write(store):
        raise PersistenceError("disk full", "write")

    monkeypatch.setattr(processor.snapshot, "write", _failing_write)

    with pytest.raises(PersistenceError):
        await processor.create_issue("Bug B")

    assert [i.title for i in processor.store.issues] == ["Bug A"]
    assert processor.store.next_id == 2
    assert len(observer.of_type("issue_created")) == 1
    assert recorder.records == ["Issue #1 created by Anonymous: Bug A"]


async def test_history_failure_does_not_fail_mutation(processor, recorder, make_observer):
    observer = make_observer()
    await processor.connect(observer)
    recorder.raise_on_submit = True

    issue = await processor.create_issue("Bug A")

    assert issue.id == 1
    assert len(observer.of_type("issue_created")) == 1


# -- Concurrency and consistency -----------------------------------------------

async def test_concurrent_creates_lose_nothing(processor):
    issues = await asyncio.gather(
        *(processor.create_issue(f"Issue {n}") for n in range(20)),
    )

    assert sorted(i.id for i in issues) == list(range(1, 21))
    assert len(processor.store.issues) == 20
    assert processor.store.next_id == 21


async def test_concurrent_comments_all_kept(processor, snapshot_path):
    await processor.create_issue("Bug A")
    await asyncio.gather(
        *(processor.add_comment(1, "bot", f"c{n}") for n in range(10)),
    )

    on_disk = json.loads(snapshot_path.read_text())
    texts = [c["text"] for c in on_disk["issues"][0]["comments"]]
    assert sorted(texts) == sorted(f"c{n}" for n in range(10))


async def test_new_observer_init_reflects_mutations(processor, make_observer):
    await processor.create_issue("Bug A", "", "alice")
    await processor.add_comment(1, None, "first")

    late = make_observer()
    await processor.connect(late)

    init = late.events[0]
    assert init["type"] == "init"
    assert init["data"] == processor.store.to_dict()
    assert init["data"]["issues"][0]["comments"][0]["author"] == "Anonymous"


async def test_out_of_band_snapshot_edit_is_honored(processor, snapshot_path):
    """Reload-before-mutate picks up edits made directly to the file."""
    await processor.create_issue("Bug A")
    doc = json.loads(snapshot_path.read_text())
    doc["issues"][0]["title"] = "Edited on disk"
    snapshot_path.write_text(json.dumps(doc))

    await processor.create_issue("Bug B")

    assert processor.store.find(1).title == "Edited on disk"


async def test_removed_issue_id_is_not_reused(processor, snapshot_path):
    """Dropping the newest issue from the file and lowering nextId cannot recycle its id."""
    for title in ("Bug A", "Bug B", "Bug C"):
        await processor.create_issue(title)
    doc = json.loads(snapshot_path.read_text())
    doc["issues"] = doc["issues"][:2]
    doc["nextId"] = 3
    snapshot_path.write_text(json.dumps(doc))

    issue = await processor.create_issue("Bug D")

    assert issue.id == 4
    assert processor.store.next_id == 5
    assert [i.title for i in processor.store.issues] == ["Bug A", "Bug B", "Bug D"]


async def test_init_reflects_out_of_band_edit(processor, snapshot_path, make_observer):
    await processor.create_issue("Bug A")
    doc = json.loads(snapshot_path.read_text())
    doc["issues"][0]["title"] = "Edited on disk"
    snapshot_path.write_text(json.dumps(doc))

    late = make_observer()
    await processor.connect(late)

    assert late.events[0]["data"]["issues"][0]["title"] == "Edited on disk"
    assert processor.store.find(1).title == "Edited on disk"


async def test_corrupt_snapshot_mid_run_falls_back_to_memory(processor, snapshot_path):
    await processor.create_issue("Bug A")
    snapshot_path.write_text("garbage")

    issue = await processor.create_issue("Bug B")

    assert issue.id == 2
    on_disk = json.loads(snapshot_path.read_text())
    assert [i["title"] for i in on_disk["issues"]] == ["Bug A", "Bug B"]
