"""Message Dispatch — decodes one client message and routes it to the MutationProcessor.

Invariants:
    - Successful mutations reply via broadcast only (the requester included)
    - IssueBoardError → `error` event to the requesting observer only
    - Unexpected exceptions → generic `error` event, full traceback in logs,
      connection stays open
    - Nothing is ever broadcast for a failed request

Design Decisions:
    - Pydantic ValidationError mapped to IssueValidationError so clients see a
      single error shape regardless of where validation failed
    - Pure match-case dispatch on the parsed event model
"""

import json
import logging

from pydantic import ValidationError

from issueboard.core.domain_types import ClientEventType
from issueboard.core.errors import (
    IssueBoardError, IssueValidationError, ProtocolError,
)
from issueboard.core.events import error_event
from issueboard.core.protocols import Observer
from issueboard.schemas.client_events import (
    AddCommentEvent, CreateIssueEvent, UpdateIssueEvent, client_event_adapter,
)
from issueboard.services.mutation_processor import MutationProcessor

logger = logging.getLogger(__name__)

_KNOWN_TYPES = {t.value for t in ClientEventType}


class MessageDispatcher:
    """Turns raw client messages into processor calls and error replies."""

    def __init__(self, processor: MutationProcessor):
        self.processor = processor

    async def handle(self, observer: Observer, raw: str | bytes | dict) -> None:
        """Process one message; never raises for request-level failures."""
        try:
            event = parse_client_event(raw)
            await self._dispatch(event)
        except IssueBoardError as e:
            logger.info(
                f"Request rejected: {e.message}",
                extra={
                    "observer_id": observer.observer_id,
                    "error_code": e.code,
                    "issue_id": e.context.issue_id,
                },
            )
            await self._reply(observer, e.to_ws_event())
        except Exception:
            logger.exception(
                "Message handling error",
                extra={"observer_id": observer.observer_id},
            )
            await self._reply(
                observer, error_event("An unexpected error occurred", "INTERNAL_ERROR"),
            )

    async def _dispatch(self, event) -> None:
        match event:
            case CreateIssueEvent(payload=p):
                await self.processor.create_issue(
                    p.title, p.description, p.created_by,
                )
            case UpdateIssueEvent(payload=p):
                await self.processor.update_issue(
                    p.id, p.changed_fields(), p.updated_by,
                )
            case AddCommentEvent(payload=p):
                await self.processor.add_comment(
                    p.id, p.comment.author, p.comment.text,
                )

    async def _reply(self, observer: Observer, event: dict) -> None:
        if not observer.is_open:
            return
        try:
            await observer.send_event(event)
        except Exception as e:
            logger.warning(
                f"Could not deliver error to observer: {e}",
                extra={"observer_id": observer.observer_id},
            )


def parse_client_event(raw: str | bytes | dict):
    """Decode and validate a client message into one of the event models."""
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ProtocolError(f"Malformed JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, dict):
        raise ProtocolError("Message must be a JSON object")
    event_type = data.get("type")
    if not isinstance(event_type, str) or event_type not in _KNOWN_TYPES:
        raise ProtocolError(f"Unknown event type: {event_type!r}")

    try:
        return client_event_adapter.validate_python(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(loc) for loc in first["loc"])
        raise IssueValidationError(f"{field}: {first['msg']}", field) from e
