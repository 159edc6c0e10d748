"""Bearer-token guard for the page administration endpoints.

Only ``ADMIN_PATHS`` are guarded. The webhook itself must stay reachable
without credentials since the platform cannot attach a Bearer token.
"""

from __future__ import annotations

import hmac

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from src.audit.logger import AuditLogger
from src.models import AuditEvent, AuditEventType, RiskLevel

ADMIN_PATHS = frozenset({"/set"})

BEARER_PREFIX = "Bearer "

# Failure reason -> (status code, response body)
DENIALS: dict[str, tuple[int, dict[str, str]]] = {
    "missing_token": (401, {"error": "Authentication required"}),
    "invalid_format": (401, {"error": "Authentication required"}),
    "invalid_token": (403, {"error": "Access denied"}),
}


class AdminAuthMiddleware:
    """Rejects admin requests whose Bearer token does not match ``token``."""

    def __init__(
        self,
        app: ASGIApp,
        token: str,
        audit_logger: AuditLogger | None = None,
        protected_paths: frozenset[str] = ADMIN_PATHS,
    ) -> None:
        self.app = app
        self._expected = token.encode()
        self.audit_logger = audit_logger
        self._protected_paths = protected_paths

    def denial_reason(self, authorization: str) -> str | None:
        """Classify an ``Authorization`` header value; None means allowed."""
        if not authorization:
            return "missing_token"
        if not authorization.startswith(BEARER_PREFIX):
            return "invalid_format"
        presented = authorization[len(BEARER_PREFIX):].encode()
        if not hmac.compare_digest(presented, self._expected):
            return "invalid_token"
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] not in self._protected_paths:
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        reason = self.denial_reason(request.headers.get("authorization", ""))
        if reason is None:
            await self.app(scope, receive, send)
            return

        self._record_denial(request, reason)
        status_code, body = DENIALS[reason]
        await JSONResponse(body, status_code=status_code)(scope, receive, send)

    def _record_denial(self, request: Request, reason: str) -> None:
        if self.audit_logger is None:
            return
        self.audit_logger.log(AuditEvent(
            event_type=AuditEventType.ADMIN_AUTH_FAILURE,
            source_ip=request.client.host if request.client else None,
            action=f"{request.method} {request.url.path}",
            result="denied",
            risk_level=RiskLevel.HIGH,
            details={"reason": reason},
        ))
