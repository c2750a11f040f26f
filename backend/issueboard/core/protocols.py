"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Observers are opaque: anything that can report openness and send an event
    - The history recorder accepts work without ever blocking the caller

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async send in Observer: implementations do transport IO, the hub awaits it
"""

from typing import Protocol

from issueboard.core.domain_types import ObserverId


class Observer(Protocol):
    """A connected client channel as seen by the broadcast hub."""
    observer_id: ObserverId

    @property
    def is_open(self) -> bool: ...

    async def send_event(self, event: dict) -> None:
        """Deliver one event or raise if the channel failed."""
        ...


class HistoryRecorder(Protocol):
    """Best-effort, fire-and-forget version history sink."""

    def submit(self, description: str) -> None:
        """Queue a record; must return immediately and never raise."""
        ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    def status(self) -> dict: ...
