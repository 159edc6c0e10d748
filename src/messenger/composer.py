"""Response composer: maps one inbound event to one outbound reply.

Message branches, first match wins:
1. Text containing the ``/t`` command marker: look up the tracking code
2. At least one attachment: ask the user to confirm the first image
3. Anything else: reply with the invalid-syntax help text

Postbacks are a plain payload lookup with no external calls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.messenger.models import (
    AttachmentTemplate,
    Button,
    MessageEvent,
    PostbackEvent,
    TextResponse,
)
from src.models import AuditEvent, AuditEventType, RiskLevel
from src.tracking.client import (
    LookupFailed,
    OrderFound,
    OrderNotFound,
    build_tracking_url,
)

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger
    from src.messenger.models import InboundEvent, OutboundResponse
    from src.messenger.templates import MessageTemplates
    from src.tracking.client import OrderLookupClient

logger = logging.getLogger(__name__)

COMMAND_MARKER = "/t"

PAYLOAD_YES = "yes"
PAYLOAD_NO = "no"
PAYLOAD_TRACKING = "TRACKING"
PAYLOAD_GET_STARTED = "get_started"


def extract_tracking_code(text: str) -> str:
    """Return the token after the first space, or ``""`` when there is none.

    Only one code is looked up; ``/t a,b`` searches for ``a,b`` as-is.
    """
    parts = text.split(" ")
    return parts[1] if len(parts) > 1 else ""


class ResponseComposer:
    """Builds replies from a template set and an order lookup client."""

    def __init__(
        self,
        templates: MessageTemplates,
        lookup_client: OrderLookupClient,
        tracking_page_url: str,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._templates = templates
        self._lookup = lookup_client
        self._tracking_page_url = tracking_page_url
        self._audit = audit_logger

    async def compose(self, event: InboundEvent) -> OutboundResponse:
        if isinstance(event, PostbackEvent):
            return self.compose_postback(event)
        return await self.compose_message(event)

    async def compose_message(self, message: MessageEvent) -> OutboundResponse:
        text = message.text or ""
        if COMMAND_MARKER in text:
            return await self.compose_tracking_reply(
                extract_tracking_code(text), message.sender_id,
            )

        if message.attachments:
            return self.compose_image_confirmation(message.attachments[0].url)

        return TextResponse(self._templates.invalid_syntax)

    async def compose_tracking_reply(
        self, code: str, sender_id: str | None = None,
    ) -> TextResponse:
        result = await self._lookup.lookup(code)
        if isinstance(result, OrderFound):
            url = build_tracking_url(self._tracking_page_url, code)
            return TextResponse(self._templates.render_found(code, url))
        if isinstance(result, LookupFailed):
            logger.warning("Tracking lookup for %s degraded to not-found: %s", code, result.reason)
            if self._audit:
                self._audit.log(AuditEvent(
                    event_type=AuditEventType.LOOKUP_FAILURE,
                    sender_id=sender_id,
                    action="order_lookup",
                    result="failure",
                    risk_level=RiskLevel.LOW,
                    details={"code": code, "reason": result.reason},
                ))
        elif not isinstance(result, OrderNotFound):
            raise TypeError(f"Unexpected lookup result: {result!r}")
        return TextResponse(self._templates.render_not_found(code))

    def compose_image_confirmation(self, image_url: str) -> AttachmentTemplate:
        return AttachmentTemplate(
            image_url=image_url,
            title=self._templates.confirm_title,
            subtitle=self._templates.confirm_subtitle,
            buttons=(
                Button(title=self._templates.yes_title, payload=PAYLOAD_YES),
                Button(title=self._templates.no_title, payload=PAYLOAD_NO),
            ),
        )

    def compose_postback(self, postback: PostbackEvent) -> TextResponse:
        if postback.payload == PAYLOAD_YES:
            return TextResponse(self._templates.thanks)
        if postback.payload == PAYLOAD_NO:
            return TextResponse(self._templates.retry_image)
        # TRACKING, get_started and unknown payloads all get the help text
        return TextResponse(self._templates.syntax_help)
