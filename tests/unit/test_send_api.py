"""Tests for the Messenger Send API client."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest

from src.messenger.models import AttachmentTemplate, Button, TextResponse
from src.messenger.send_api import SendApiClient
from src.models import AuditEventType
from tests.conftest import make_async_client, make_http_response


def _make_send_api(**kwargs: Any) -> SendApiClient:
    defaults: dict[str, Any] = {
        "page_access_token": "PAGE_TOKEN",
        "graph_api_base": "https://graph.facebook.com/",
        "send_api_version": "v15.0",
        "profile_api_version": "v2.6",
        "timeout": 10.0,
    }
    defaults.update(kwargs)
    return SendApiClient(**defaults)


class TestUrls:
    def test_messages_url(self) -> None:
        assert _make_send_api().messages_url == "https://graph.facebook.com/v15.0/me/messages"

    def test_profile_url(self) -> None:
        assert (
            _make_send_api().profile_url
            == "https://graph.facebook.com/v2.6/me/messenger_profile"
        )


class TestSend:
    @pytest.mark.asyncio
    async def test_posts_recipient_and_message(self) -> None:
        ok = make_http_response(json_body={"recipient_id": "PSID", "message_id": "m1"})
        mock_client = make_async_client(post=ok)
        with patch("src.messenger.send_api.httpx.AsyncClient", return_value=mock_client) as cls:
            sent = await _make_send_api().send("PSID", TextResponse("hi"))

        assert sent is True
        cls.assert_called_once_with(verify=True)
        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://graph.facebook.com/v15.0/me/messages"
        assert kwargs["params"] == {"access_token": "PAGE_TOKEN"}
        assert kwargs["json"] == {"recipient": {"id": "PSID"}, "message": {"text": "hi"}}

    @pytest.mark.asyncio
    async def test_serializes_attachment_template(self) -> None:
        mock_client = make_async_client(post=make_http_response(json_body={}))
        template = AttachmentTemplate(
            image_url="https://cdn.example.com/a.png",
            title="Is this the right picture?",
            subtitle="Tap a button to answer.",
            buttons=(Button("Yes!", "yes"), Button("No!", "no")),
        )
        with patch("src.messenger.send_api.httpx.AsyncClient", return_value=mock_client):
            await _make_send_api().send("PSID", template)

        message = mock_client.post.call_args[1]["json"]["message"]
        element = message["attachment"]["payload"]["elements"][0]
        assert message["attachment"]["type"] == "template"
        assert element["image_url"] == "https://cdn.example.com/a.png"
        assert [b["payload"] for b in element["buttons"]] == ["yes", "no"]

    @pytest.mark.asyncio
    async def test_network_error_is_swallowed(self, mock_audit_logger: MagicMock) -> None:
        mock_client = make_async_client(post=httpx.ConnectError("down"))
        send_api = _make_send_api(audit_logger=mock_audit_logger)
        with patch("src.messenger.send_api.httpx.AsyncClient", return_value=mock_client):
            sent = await send_api.send("PSID", TextResponse("hi"))

        assert sent is False
        event = mock_audit_logger.log.call_args[0][0]
        assert event.event_type == AuditEventType.SEND_FAILURE
        assert event.sender_id == "PSID"

    @pytest.mark.asyncio
    async def test_error_status_is_swallowed(self) -> None:
        mock_client = make_async_client(
            post=make_http_response(status_code=400, json_body={"error": {"code": 100}}),
        )
        with patch("src.messenger.send_api.httpx.AsyncClient", return_value=mock_client):
            sent = await _make_send_api().send("PSID", TextResponse("hi"))
        assert sent is False
        assert mock_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_malformed_body_is_a_failure(self) -> None:
        resp = make_http_response(json_error=json.JSONDecodeError("bad", "", 0))
        mock_client = make_async_client(post=resp)
        with patch("src.messenger.send_api.httpx.AsyncClient", return_value=mock_client):
            sent = await _make_send_api().send("PSID", TextResponse("hi"))
        assert sent is False

    @pytest.mark.asyncio
    async def test_success_is_not_audited(self, mock_audit_logger: MagicMock) -> None:
        mock_client = make_async_client(post=make_http_response(json_body={}))
        send_api = _make_send_api(audit_logger=mock_audit_logger)
        with patch("src.messenger.send_api.httpx.AsyncClient", return_value=mock_client):
            await send_api.send("PSID", TextResponse("hi"))
        mock_audit_logger.log.assert_not_called()


class TestSetProfile:
    @pytest.mark.asyncio
    async def test_posts_profile_document(self, mock_audit_logger: MagicMock) -> None:
        mock_client = make_async_client(post=make_http_response(json_body={"result": "success"}))
        send_api = _make_send_api(audit_logger=mock_audit_logger)
        profile = {"get_started": {"payload": "get_started"}}
        with patch("src.messenger.send_api.httpx.AsyncClient", return_value=mock_client):
            ok = await send_api.set_profile(profile)

        assert ok is True
        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://graph.facebook.com/v2.6/me/messenger_profile"
        assert kwargs["json"] == profile
        event = mock_audit_logger.log.call_args[0][0]
        assert event.event_type == AuditEventType.PROFILE_SETUP
        assert event.result == "success"

    @pytest.mark.asyncio
    async def test_failure_returns_false(self) -> None:
        mock_client = make_async_client(post=httpx.ReadTimeout("slow"))
        with patch("src.messenger.send_api.httpx.AsyncClient", return_value=mock_client):
            ok = await _make_send_api().set_profile({})
        assert ok is False
