"""Messenger Send API and Messenger Profile API client.

Failures are logged and reported as ``False``; nothing here raises into the
dispatcher, because the webhook delivery has usually been acknowledged
before a send completes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from src.config import DEFAULT_GRAPH_API_BASE
from src.models import AuditEvent, AuditEventType, RiskLevel

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger
    from src.messenger.models import OutboundResponse

logger = logging.getLogger(__name__)


class SendApiClient:
    """Posts replies and page profile settings to the Graph API."""

    def __init__(
        self,
        page_access_token: str,
        graph_api_base: str = DEFAULT_GRAPH_API_BASE,
        send_api_version: str = "v15.0",
        profile_api_version: str = "v2.6",
        timeout: float = 30.0,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._access_token = page_access_token
        self._base = graph_api_base.rstrip("/")
        self._send_api_version = send_api_version
        self._profile_api_version = profile_api_version
        self._timeout = timeout
        self._audit = audit_logger

    @property
    def messages_url(self) -> str:
        return f"{self._base}/{self._send_api_version}/me/messages"

    @property
    def profile_url(self) -> str:
        return f"{self._base}/{self._profile_api_version}/me/messenger_profile"

    async def send(self, recipient_id: str, response: OutboundResponse) -> bool:
        """Send one reply to a user. Returns True when the platform accepted it."""
        request_body = {
            "recipient": {"id": recipient_id},
            "message": response.to_payload(),
        }
        data = await self._post(self.messages_url, request_body)
        if data is None:
            self._audit_failure(
                AuditEventType.SEND_FAILURE, "send_message", recipient_id,
            )
            return False
        logger.info("Message sent to %s: %s", recipient_id, data)
        return True

    async def set_profile(self, profile: dict[str, Any]) -> bool:
        """Overwrite the page's greeting, get-started button and persistent menu."""
        data = await self._post(self.profile_url, profile)
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=AuditEventType.PROFILE_SETUP,
                action="set_profile",
                result="success" if data is not None else "failure",
                risk_level=RiskLevel.INFO if data is not None else RiskLevel.MEDIUM,
            ))
        if data is None:
            return False
        logger.info("Messenger profile updated: %s", data)
        return True

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any] | None:
        """POST once; return the decoded JSON body, or None on any failure."""
        params = {"access_token": self._access_token}
        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    url, params=params, json=body, timeout=self._timeout,
                )
        except httpx.HTTPError as e:
            logger.error("Unable to reach %s: %s", url, e)
            return None

        if resp.status_code >= 400:
            logger.error("Graph API call to %s failed with HTTP %s: %s", url, resp.status_code, resp.text)
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.error("Graph API call to %s returned a non-JSON body", url)
            return None
        return data if isinstance(data, dict) else {"result": data}

    def _audit_failure(
        self, event_type: AuditEventType, action: str, sender_id: str,
    ) -> None:
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=event_type,
                sender_id=sender_id,
                action=action,
                result="failure",
                risk_level=RiskLevel.MEDIUM,
            ))
