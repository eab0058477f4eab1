"""Client for the order listing endpoint of the ordering API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException

from qrmenu.config.settings import ORDER_API_BASE_URL, ORDER_API_TIMEOUT, ORDER_FETCH_LIMIT
from qrmenu.services.auth_utils import build_auth_headers

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Failed to fetch orders"


class OrderSourceError(RuntimeError):
    """Base error raised when orders cannot be obtained."""


class OrderSourceUnavailable(OrderSourceError):
    """Raised when the order API cannot be reached or answers with an error status."""


class OrderSourceRejected(OrderSourceError):
    """Raised when the order API answers but reports ``success: false``."""


class OrderSourceClient:
    """Fetch order snapshots on behalf of an authenticated caller."""

    def __init__(
        self,
        access_token: Optional[str],
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = (base_url or ORDER_API_BASE_URL).rstrip("/")
        self.timeout = ORDER_API_TIMEOUT if timeout is None else timeout
        self.transport = transport

    async def fetch_orders(
        self,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = ORDER_FETCH_LIMIT,
        failure_message: str = DEFAULT_FAILURE_MESSAGE,
    ) -> List[Dict[str, Any]]:
        """Return the raw order rows created between ``start`` and ``end``."""

        params: Dict[str, Any] = {"limit": limit}
        if start is not None:
            params["startDate"] = format_order_timestamp(start)
        if end is not None:
            params["endDate"] = format_order_timestamp(end)
        url = f"{self.base_url}/orders/restaurant"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=params, headers=build_auth_headers(self.access_token))
        except httpx.HTTPError as exc:
            logger.error("Order API unreachable: %s", exc)
            raise OrderSourceUnavailable(failure_message) from exc

        if not response.is_success:
            logger.error("Order API answered %s for %s", response.status_code, url)
            raise OrderSourceUnavailable(failure_message)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Order API returned a non-JSON body (%s)", response.status_code)
            raise OrderSourceUnavailable(failure_message) from exc

        if not isinstance(payload, dict):
            raise OrderSourceUnavailable(failure_message)
        if not payload.get("success"):
            raise OrderSourceRejected(payload.get("message") or failure_message)

        rows = payload.get("data")
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise OrderSourceUnavailable(failure_message)
        return rows


def format_order_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    normalized = value.astimezone(timezone.utc).replace(microsecond=0)
    return normalized.isoformat().replace("+00:00", "Z")


def raise_order_source_error(exc: OrderSourceError, *, context: str) -> None:
    """Map order source failures to FastAPI HTTP exceptions with logging."""

    logger.error("%s failed: %s", context, exc)
    if isinstance(exc, OrderSourceRejected):
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    raise HTTPException(status_code=503, detail=str(exc)) from exc


__all__ = [
    "OrderSourceClient",
    "OrderSourceError",
    "OrderSourceRejected",
    "OrderSourceUnavailable",
    "format_order_timestamp",
    "raise_order_source_error",
]
