import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi import HTTPException

from qrmenu.services.order_source import (
    OrderSourceClient,
    OrderSourceRejected,
    OrderSourceUnavailable,
    format_order_timestamp,
    raise_order_source_error,
)


def _client(handler):
    return OrderSourceClient("test-token", base_url="http://orders.test/api/", transport=httpx.MockTransport(handler))


def test_fetch_orders_sends_window_limit_and_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["authorization"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": [{"_id": "o1"}]})

    start = datetime(2026, 10, 17, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    end = datetime(2026, 10, 18, 15, 0, 12, 345000, tzinfo=timezone.utc)
    rows = asyncio.run(_client(handler).fetch_orders(start=start, end=end, limit=1000))

    assert rows == [{"_id": "o1"}]
    assert seen["path"] == "/api/orders/restaurant"
    assert seen["params"] == {
        "limit": "1000",
        "startDate": "2026-10-16T22:00:00Z",
        "endDate": "2026-10-18T15:00:12Z",
    }
    assert seen["authorization"] == "Bearer test-token"


def test_fetch_orders_without_window_only_sends_limit():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"success": True, "data": []})

    assert asyncio.run(_client(handler).fetch_orders(limit=10)) == []
    assert seen["params"] == {"limit": "10"}


def test_error_status_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"success": False, "message": "boom"})

    with pytest.raises(OrderSourceUnavailable) as excinfo:
        asyncio.run(_client(handler).fetch_orders(failure_message="Failed to fetch analytics data"))

    assert str(excinfo.value) == "Failed to fetch analytics data"


def test_transport_failure_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(OrderSourceUnavailable) as excinfo:
        asyncio.run(_client(handler).fetch_orders(failure_message="Failed to fetch orders data"))

    assert str(excinfo.value) == "Failed to fetch orders data"
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_non_json_body_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(OrderSourceUnavailable):
        asyncio.run(_client(handler).fetch_orders())


def test_unsuccessful_payload_forwards_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "Restaurant not found"})

    with pytest.raises(OrderSourceRejected) as excinfo:
        asyncio.run(_client(handler).fetch_orders(failure_message="Failed to fetch recent activity"))

    assert str(excinfo.value) == "Restaurant not found"


def test_unsuccessful_payload_without_message_uses_failure_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False})

    with pytest.raises(OrderSourceRejected) as excinfo:
        asyncio.run(_client(handler).fetch_orders(failure_message="Failed to fetch popular hours data"))

    assert str(excinfo.value) == "Failed to fetch popular hours data"


def test_naive_timestamps_are_sent_as_utc():
    assert format_order_timestamp(datetime(2026, 10, 18, 9, 30, 1, 999)) == "2026-10-18T09:30:01Z"


def test_errors_map_to_http_statuses():
    with pytest.raises(HTTPException) as rejected:
        raise_order_source_error(OrderSourceRejected("Restaurant not found"), context="test")
    assert rejected.value.status_code == 502
    assert rejected.value.detail == "Restaurant not found"

    with pytest.raises(HTTPException) as unavailable:
        raise_order_source_error(OrderSourceUnavailable("Failed to fetch"), context="test")
    assert unavailable.value.status_code == 503
