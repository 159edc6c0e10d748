"""Order-tracking API client.

Every call returns a ``LookupResult`` value instead of raising, so callers
can map each outcome to a reply without exception handling:

- ``OrderFound``: the API answered ``isSuccess: true``
- ``OrderNotFound``: the API answered, but with a falsy ``isSuccess``
- ``LookupFailed``: transport error, timeout, non-2xx status or a body
  that is not a JSON object
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from src.config import DEFAULT_TRACKING_API_URL, DEFAULT_TRACKING_SORT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderFound:
    code: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderNotFound:
    code: str


@dataclass(frozen=True)
class LookupFailed:
    code: str
    reason: str


LookupResult = OrderFound | OrderNotFound | LookupFailed


def build_tracking_url(page_url: str, code: str) -> str:
    """Public tracking page link for one code, e.g. ``...?trackingNumber=ABC123``."""
    return str(httpx.URL(page_url).copy_merge_params({"trackingNumber": code}))


class OrderLookupClient:
    """Looks up order status by tracking code. One attempt per call."""

    def __init__(
        self,
        api_url: str = DEFAULT_TRACKING_API_URL,
        sort: str = DEFAULT_TRACKING_SORT,
        timeout: float = 30.0,
    ) -> None:
        self._api_url = api_url
        self._sort = sort
        self._timeout = timeout

    async def lookup(self, code: str) -> LookupResult:
        params = {"keySearch": code, "sort": self._sort}
        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.get(self._api_url, params=params, timeout=self._timeout)
        except httpx.TimeoutException:
            logger.warning("Order lookup for %s timed out", code)
            return LookupFailed(code=code, reason="timeout")
        except httpx.HTTPError as e:
            logger.warning("Order lookup for %s failed: %s", code, e)
            return LookupFailed(code=code, reason=f"transport: {e.__class__.__name__}")

        if resp.status_code >= 400:
            logger.warning("Order lookup for %s returned HTTP %s", code, resp.status_code)
            return LookupFailed(code=code, reason=f"status {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            return LookupFailed(code=code, reason="invalid json")
        if not isinstance(body, dict):
            return LookupFailed(code=code, reason="unexpected body")

        if body.get("isSuccess"):
            return OrderFound(code=code, data=body)
        return OrderNotFound(code=code)
