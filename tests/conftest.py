"""Shared test fixtures for the messenger tracking bot."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.config import Settings
from src.messenger.models import Attachment, MessageEvent, PostbackEvent
from src.messenger.templates import MessageTemplates


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def templates() -> MessageTemplates:
    return MessageTemplates()


# --- Factory functions for test data ---


def make_settings(**kwargs: Any) -> Settings:
    """Factory for Settings with test credentials."""
    defaults: dict[str, Any] = {
        "verify_token": "test-verify-token",
        "page_access_token": "test-page-token",
    }
    defaults.update(kwargs)
    return Settings(**defaults)


def make_message_event(**kwargs: Any) -> MessageEvent:
    defaults: dict[str, Any] = {
        "sender_id": "PSID_1",
        "text": "hello",
        "attachments": (),
    }
    defaults.update(kwargs)
    return MessageEvent(**defaults)


def make_postback_event(**kwargs: Any) -> PostbackEvent:
    defaults: dict[str, Any] = {
        "sender_id": "PSID_1",
        "payload": "TRACKING",
    }
    defaults.update(kwargs)
    return PostbackEvent(**defaults)


def make_image(url: str = "https://cdn.example.com/cat.png") -> Attachment:
    return Attachment(type="image", url=url)


def make_messaging(
    sender_id: str = "PSID_1",
    message: dict[str, Any] | None = None,
    postback: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """One entry.messaging[] element as the platform sends it."""
    event: dict[str, Any] = {
        "sender": {"id": sender_id},
        "recipient": {"id": "PAGE_ID"},
        "timestamp": 1700000000000,
    }
    if message is not None:
        event["message"] = message
    if postback is not None:
        event["postback"] = postback
    return event


def make_envelope(*messaging: dict[str, Any], obj: str = "page") -> dict[str, Any]:
    """A page-subscription delivery with one entry per messaging event."""
    return {
        "object": obj,
        "entry": [
            {"id": "PAGE_ID", "time": 1700000000000, "messaging": [m]}
            for m in messaging
        ],
    }


def make_http_response(
    status_code: int = 200,
    json_body: Any = None,
    json_error: Exception | None = None,
) -> MagicMock:
    resp = MagicMock(status_code=status_code)
    resp.text = "" if json_body is None else str(json_body)
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = json_body
    return resp


def make_async_client(
    post: Any = None,
    get: Any = None,
) -> AsyncMock:
    """An httpx.AsyncClient stand-in usable as ``async with``.

    ``post`` / ``get`` are either a response, a list of responses, or an
    exception to raise.
    """
    client = AsyncMock()
    for method, value in (("post", post), ("get", get)):
        if value is None:
            continue
        mock_method = getattr(client, method)
        if isinstance(value, list) or isinstance(value, BaseException):
            mock_method.side_effect = value
        else:
            mock_method.return_value = value
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client
