"""Data models for inbound Messenger events and outbound responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Attachment:
    """One media attachment carried by an inbound message."""

    type: str
    url: str


@dataclass(frozen=True)
class MessageEvent:
    """A user message: optional text plus zero or more attachments."""

    sender_id: str
    text: str | None = None
    attachments: tuple[Attachment, ...] = ()
    mid: str | None = None


@dataclass(frozen=True)
class PostbackEvent:
    """A button click carrying the payload token the button was built with."""

    sender_id: str
    payload: str
    title: str | None = None


InboundEvent = MessageEvent | PostbackEvent


@dataclass(frozen=True)
class Button:
    title: str
    payload: str

    def to_payload(self) -> dict[str, str]:
        return {"type": "postback", "title": self.title, "payload": self.payload}


@dataclass(frozen=True)
class TextResponse:
    body: str

    def to_payload(self) -> dict[str, Any]:
        return {"text": self.body}


@dataclass(frozen=True)
class AttachmentTemplate:
    """Generic template showing one image with postback buttons under it."""

    image_url: str
    title: str
    subtitle: str
    buttons: tuple[Button, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        return {
            "attachment": {
                "type": "template",
                "payload": {
                    "template_type": "generic",
                    "elements": [
                        {
                            "title": self.title,
                            "subtitle": self.subtitle,
                            "image_url": self.image_url,
                            "buttons": [b.to_payload() for b in self.buttons],
                        },
                    ],
                },
            },
        }


OutboundResponse = TextResponse | AttachmentTemplate
