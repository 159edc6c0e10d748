"""Webhook event dispatcher.

Turns a page-subscription delivery into ``MessageEvent`` / ``PostbackEvent``
values and handles each one in its own asyncio task. ``dispatch`` returns as
soon as the tasks are scheduled so the delivery can be acknowledged right
away; replies go out whenever their task finishes, in no particular order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from src.messenger.models import Attachment, MessageEvent, PostbackEvent

if TYPE_CHECKING:
    from src.messenger.composer import ResponseComposer
    from src.messenger.models import InboundEvent
    from src.messenger.send_api import SendApiClient

logger = logging.getLogger(__name__)

PAGE_OBJECT = "page"


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _attachment_url(attachment: dict[str, Any]) -> str:
    payload = attachment.get("payload")
    if not isinstance(payload, dict):
        return ""
    return str(payload.get("url") or "")


def parse_event(messaging: dict[str, Any]) -> InboundEvent | None:
    """Classify one messaging sub-event; None for anything unsupported."""
    sender = messaging.get("sender")
    sender_id = str(sender.get("id") or "") if isinstance(sender, dict) else ""
    if not sender_id:
        return None

    message = messaging.get("message")
    if isinstance(message, dict):
        text = message.get("text")
        attachments = tuple(
            Attachment(
                type=str(a.get("type", "")),
                url=_attachment_url(a),
            )
            for a in _as_list(message.get("attachments"))
            if isinstance(a, dict)
        )
        return MessageEvent(
            sender_id=sender_id,
            text=text if isinstance(text, str) else None,
            attachments=attachments,
            mid=message.get("mid"),
        )

    postback = messaging.get("postback")
    if isinstance(postback, dict):
        return PostbackEvent(
            sender_id=sender_id,
            payload=str(postback.get("payload", "")),
            title=postback.get("title"),
        )
    return None


class EventDispatcher:
    """Routes webhook events through the composer to the Send API."""

    def __init__(self, composer: ResponseComposer, send_api: SendApiClient) -> None:
        self._composer = composer
        self._send_api = send_api
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @staticmethod
    def accepts(envelope: Any) -> bool:
        return isinstance(envelope, dict) and envelope.get("object") == PAGE_OBJECT

    def parse_events(self, envelope: dict[str, Any]) -> list[InboundEvent]:
        """Take the first messaging sub-event of every entry."""
        events: list[InboundEvent] = []
        for entry in _as_list(envelope.get("entry")):
            messaging = _as_list(entry.get("messaging")) if isinstance(entry, dict) else []
            if not messaging or not isinstance(messaging[0], dict):
                logger.debug("Skipping entry without messaging events: %s", entry)
                continue
            event = parse_event(messaging[0])
            if event is None:
                logger.debug("Ignoring unsupported messaging event: %s", messaging[0])
                continue
            events.append(event)
        return events

    def dispatch(self, envelope: dict[str, Any]) -> int:
        """Schedule one task per event and return how many were scheduled."""
        events = self.parse_events(envelope)
        for event in events:
            logger.info("Dispatching %s from %s", type(event).__name__, event.sender_id)
            task = asyncio.create_task(self.handle_event(event))
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)
        return len(events)

    async def handle_event(self, event: InboundEvent) -> None:
        response = await self._composer.compose(event)
        await self._send_api.send(event.sender_id, response)

    async def join(self) -> None:
        """Wait for every in-flight event task to finish."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Event handling failed", exc_info=exc)
