"""Process configuration loaded once from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_GRAPH_API_BASE = "https://graph.facebook.com"
DEFAULT_TRACKING_API_URL = "https://api.globex.vn/tmm/api/v1/nonAuthen/tracking"
DEFAULT_TRACKING_SORT = "createdAt|desc,statusId|desc"
DEFAULT_TRACKING_PAGE_URL = "https://globex.vn/tra-cuu"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    verify_token: str
    page_access_token: str
    app_secret: str | None = None
    admin_token: str | None = None
    graph_api_base: str = DEFAULT_GRAPH_API_BASE
    send_api_version: str = "v15.0"
    profile_api_version: str = "v2.6"
    tracking_api_url: str = DEFAULT_TRACKING_API_URL
    tracking_sort: str = DEFAULT_TRACKING_SORT
    tracking_page_url: str = DEFAULT_TRACKING_PAGE_URL
    messages_path: str | None = None
    audit_log_path: str | None = None
    http_timeout: float = Field(default=30.0, gt=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from VERIFY_TOKEN, PAGE_ACCESS_TOKEN and optional overrides."""
        env = os.environ if environ is None else environ

        missing = [
            name for name in ("VERIFY_TOKEN", "PAGE_ACCESS_TOKEN")
            if not env.get(name)
        ]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        raw_timeout = env.get("HTTP_TIMEOUT", "30")
        try:
            http_timeout = float(raw_timeout)
        except ValueError as e:
            raise ConfigError(f"HTTP_TIMEOUT must be a number, got {raw_timeout!r}") from e
        if http_timeout <= 0:
            raise ConfigError(f"HTTP_TIMEOUT must be positive, got {raw_timeout!r}")

        return cls(
            verify_token=env["VERIFY_TOKEN"],
            page_access_token=env["PAGE_ACCESS_TOKEN"],
            app_secret=env.get("APP_SECRET") or None,
            admin_token=env.get("ADMIN_TOKEN") or None,
            graph_api_base=env.get("GRAPH_API_BASE", DEFAULT_GRAPH_API_BASE),
            send_api_version=env.get("GRAPH_SEND_API_VERSION", "v15.0"),
            profile_api_version=env.get("GRAPH_PROFILE_API_VERSION", "v2.6"),
            tracking_api_url=env.get("TRACKING_API_URL", DEFAULT_TRACKING_API_URL),
            tracking_sort=env.get("TRACKING_SORT", DEFAULT_TRACKING_SORT),
            tracking_page_url=env.get("TRACKING_PAGE_URL", DEFAULT_TRACKING_PAGE_URL),
            messages_path=env.get("MESSAGES_PATH") or None,
            audit_log_path=env.get("AUDIT_LOG_PATH") or None,
            http_timeout=http_timeout,
        )
