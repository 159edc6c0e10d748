"""Shared Pydantic data models for the messenger tracking bot."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# --- Enums ---


class AuditEventType(str, Enum):
    WEBHOOK_VERIFIED = "webhook_verified"
    VERIFICATION_FAILURE = "verification_failure"
    SIGNATURE_FAILURE = "signature_failure"
    WEBHOOK_REJECTED = "webhook_rejected"
    LOOKUP_FAILURE = "lookup_failure"
    SEND_FAILURE = "send_failure"
    PROFILE_SETUP = "profile_setup"
    ADMIN_AUTH_FAILURE = "admin_auth_failure"


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    source_ip: str | None = None
    sender_id: str | None = None
    action: str
    result: str  # "success" | "failure" | "rejected"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
