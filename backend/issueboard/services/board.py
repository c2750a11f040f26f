"""Board — explicit wiring of snapshot, hub, recorder, processor and dispatcher.

Invariants:
    - Exactly one Board per application; routes reach it through app.state
    - start() loads the store before the recorder accepts records
    - stop() drains the recorder (bounded by its shutdown grace)

Design Decisions:
    - Constructed handle instead of module-level singletons: every test builds
      its own isolated Board around a tmp snapshot and fake collaborators
"""

from dataclasses import dataclass

from issueboard.config import Settings
from issueboard.core.protocols import HistoryRecorder
from issueboard.infrastructure.git_history import GitHistoryRecorder, NullHistoryRecorder
from issueboard.infrastructure.snapshot_file import SnapshotFile
from issueboard.services.broadcast_hub import BroadcastHub
from issueboard.services.message_dispatch import MessageDispatcher
from issueboard.services.mutation_processor import MutationProcessor


@dataclass
class Board:
    snapshot: SnapshotFile
    hub: BroadcastHub
    recorder: HistoryRecorder
    processor: MutationProcessor
    dispatcher: MessageDispatcher

    @classmethod
    def assemble(
        cls,
        snapshot: SnapshotFile,
        recorder: HistoryRecorder,
        hub: BroadcastHub | None = None,
        **processor_kwargs,
    ) -> "Board":
        hub = hub or BroadcastHub()
        processor = MutationProcessor(snapshot, hub, recorder, **processor_kwargs)
        return cls(
            snapshot=snapshot,
            hub=hub,
            recorder=recorder,
            processor=processor,
            dispatcher=MessageDispatcher(processor),
        )

    async def start(self) -> None:
        await self.processor.load()
        await self.recorder.start()

    async def stop(self) -> None:
        await self.recorder.stop()


def build_board(settings: Settings) -> Board:
    """Build a Board from settings (git recorder unless history is disabled)."""
    snapshot = SnapshotFile(settings.data_file)
    recorder: HistoryRecorder
    if settings.history_enabled:
        recorder = GitHistoryRecorder(
            repo_dir=settings.resolved_history_repo_dir,
            snapshot_path=settings.data_file,
            remote=settings.history_remote,
            auto_push=settings.auto_push,
            queue_size=settings.history_queue_size,
            command_timeout=settings.history_command_timeout_seconds,
            shutdown_grace=settings.history_shutdown_grace_seconds,
        )
    else:
        recorder = NullHistoryRecorder()
    return Board.assemble(
        snapshot, recorder,
        reload_before_mutate=settings.reload_before_mutate,
    )
