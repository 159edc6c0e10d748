"""FastAPI application serving the Messenger webhook."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from src.audit.logger import AuditLogger
from src.config import Settings
from src.messenger.composer import ResponseComposer
from src.messenger.dispatcher import EventDispatcher
from src.messenger.profile import setup_profile
from src.messenger.send_api import SendApiClient
from src.messenger.templates import MessageTemplates, load_templates
from src.messenger.verification import WebhookVerifier
from src.models import AuditEvent, AuditEventType, RiskLevel
from src.server.auth_middleware import AdminAuthMiddleware
from src.tracking.client import OrderLookupClient

logger = logging.getLogger(__name__)

EVENT_RECEIVED = "EVENT_RECEIVED"


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    settings = Settings.from_env()
    templates = load_templates(settings.messages_path)
    audit_logger = (
        AuditLogger.from_env(settings.audit_log_path)
        if settings.audit_log_path else None
    )
    return create_app(settings, templates, audit_logger)


def create_app(
    settings: Settings,
    templates: MessageTemplates | None = None,
    audit_logger: AuditLogger | None = None,
    lookup_client: OrderLookupClient | None = None,
    send_api: SendApiClient | None = None,
) -> FastAPI:
    """Create the webhook app; collaborators default to ones built from settings."""
    templates = templates or MessageTemplates()
    lookup_client = lookup_client or OrderLookupClient(
        api_url=settings.tracking_api_url,
        sort=settings.tracking_sort,
        timeout=settings.http_timeout,
    )
    send_api = send_api or SendApiClient(
        page_access_token=settings.page_access_token,
        graph_api_base=settings.graph_api_base,
        send_api_version=settings.send_api_version,
        profile_api_version=settings.profile_api_version,
        timeout=settings.http_timeout,
        audit_logger=audit_logger,
    )
    composer = ResponseComposer(
        templates=templates,
        lookup_client=lookup_client,
        tracking_page_url=settings.tracking_page_url,
        audit_logger=audit_logger,
    )
    dispatcher = EventDispatcher(composer=composer, send_api=send_api)
    verifier = WebhookVerifier(settings.verify_token, settings.app_secret)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        # In-flight replies are finished, never cancelled
        await dispatcher.join()

    app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.dispatcher = dispatcher

    def audit(
        event_type: AuditEventType,
        request: Request,
        result: str,
        risk_level: RiskLevel,
        **details: object,
    ) -> None:
        if audit_logger:
            audit_logger.log(AuditEvent(
                event_type=event_type,
                source_ip=request.client.host if request.client else None,
                action=f"{request.method} {request.url.path}",
                result=result,
                risk_level=risk_level,
                details=details or None,
            ))

    @app.get("/")
    async def home() -> PlainTextResponse:
        return PlainTextResponse("Hello World")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/webhook")
    async def verify_webhook(request: Request) -> Response:
        result = verifier.handle_verification(request.query_params)
        if result is None:
            return PlainTextResponse("Missing verification parameters", status_code=400)
        if result.status_code == 200:
            logger.info("WEBHOOK_VERIFIED")
            audit(AuditEventType.WEBHOOK_VERIFIED, request, "success", RiskLevel.INFO)
        else:
            audit(
                AuditEventType.VERIFICATION_FAILURE, request, "failure", RiskLevel.HIGH,
                mode=request.query_params.get("hub.mode"),
            )
        return PlainTextResponse(result.content, status_code=result.status_code)

    @app.post("/webhook")
    async def receive_webhook(request: Request) -> Response:
        body = await request.body()
        if not verifier.verify_signature(request.headers, body):
            audit(AuditEventType.SIGNATURE_FAILURE, request, "failure", RiskLevel.HIGH)
            return JSONResponse({"error": "Invalid webhook signature"}, status_code=401)

        try:
            envelope = json.loads(body)
        except ValueError:
            envelope = None

        if not dispatcher.accepts(envelope):
            audit(AuditEventType.WEBHOOK_REJECTED, request, "rejected", RiskLevel.LOW)
            return PlainTextResponse("Not Found", status_code=404)

        scheduled = dispatcher.dispatch(envelope)
        logger.debug("Scheduled %d event(s) from webhook delivery", scheduled)
        return PlainTextResponse(EVENT_RECEIVED)

    @app.post("/set")
    async def set_profile() -> PlainTextResponse:
        if await setup_profile(send_api, templates):
            return PlainTextResponse("Setup done!")
        return PlainTextResponse("Setup failed")

    if settings.admin_token:
        app.add_middleware(
            AdminAuthMiddleware, token=settings.admin_token, audit_logger=audit_logger,
        )

    return app
