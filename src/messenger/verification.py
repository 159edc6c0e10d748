"""Messenger webhook verification.

Covers the subscription handshake (GET with ``hub.*`` query parameters)
and, when an app secret is configured, the ``X-Hub-Signature-256`` HMAC
that the platform attaches to every event delivery.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class VerificationResult:
    status_code: int
    content: str


class WebhookVerifier:
    """Checks handshake tokens and delivery signatures in constant time."""

    def __init__(self, verify_token: str, app_secret: str | None = None) -> None:
        self._verify_token = verify_token
        self._app_secret = app_secret

    @property
    def signature_required(self) -> bool:
        return bool(self._app_secret)

    def handle_verification(
        self, params: Mapping[str, str],
    ) -> VerificationResult | None:
        """Answer a subscription handshake.

        Returns None when ``hub.mode`` or ``hub.verify_token`` is missing,
        200 with the challenge on a valid subscribe, 403 otherwise.
        """
        mode = params.get("hub.mode")
        token = params.get("hub.verify_token")
        if not mode or not token:
            return None

        token_ok = hmac.compare_digest(token.encode(), self._verify_token.encode())
        if mode == "subscribe" and token_ok:
            return VerificationResult(
                status_code=200, content=params.get("hub.challenge", ""),
            )
        return VerificationResult(status_code=403, content="Forbidden")

    def verify_signature(self, headers: Mapping[str, str], body: bytes) -> bool:
        """Validate ``X-Hub-Signature-256``. Always passes without an app secret."""
        if not self._app_secret:
            return True

        signature = headers.get("x-hub-signature-256", "")
        if not signature.startswith("sha256="):
            return False

        expected = hmac.new(
            self._app_secret.encode(), body, hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(signature[7:], expected)
