"""Broadcast Hub — fans out state-change events to every connected observer.

Invariants:
    - on_connect sends `init` to the new observer only, then registers it
    - broadcast() skips observers whose channel is not open (no error, no retry)
    - A failing send to one observer never prevents delivery to the others
    - Per observer, events arrive in the order broadcast() was called

Design Decisions:
    - Sequential sends within one broadcast: keeps per-channel ordering
      trivially correct because callers await broadcast() under the store lock
    - Failed observers are not evicted here: the transport unregisters on
      disconnect, and a reconnect resyncs via init
"""

import logging

from issueboard.core.domain_types import ObserverId
from issueboard.core.events import init_event
from issueboard.core.protocols import Observer
from issueboard.core.records import Store

logger = logging.getLogger(__name__)


class BroadcastHub:
    """Registry of live observers plus fan-out delivery."""

    def __init__(self):
        self._observers: dict[ObserverId, Observer] = {}

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def register(self, observer: Observer) -> None:
        self._observers[observer.observer_id] = observer
        logger.info(
            "Client connected",
            extra={"observer_id": observer.observer_id, "observers": self.observer_count},
        )

    def unregister(self, observer_id: ObserverId) -> None:
        if self._observers.pop(observer_id, None) is not None:
            logger.info(
                "Client disconnected",
                extra={"observer_id": observer_id, "observers": self.observer_count},
            )

    async def on_connect(self, observer: Observer, store: Store) -> None:
        """Send the full-state snapshot to `observer` only, then start broadcasting to it."""
        await observer.send_event(init_event(store))
        self.register(observer)

    async def broadcast(self, event: dict) -> int:
        """Send `event` to every open observer. Returns the number delivered."""
        delivered = 0
        for observer in list(self._observers.values()):
            if not observer.is_open:
                logger.debug(
                    "Skipping closed observer",
                    extra={"observer_id": observer.observer_id},
                )
                continue
            try:
                await observer.send_event(event)
                delivered += 1
            except Exception as e:
                logger.warning(
                    f"Broadcast to observer failed: {e}",
                    extra={
                        "observer_id": observer.observer_id,
                        "event_type": event.get("type"),
                    },
                )
        return delivered
