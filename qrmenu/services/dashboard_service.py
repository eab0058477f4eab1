"""Reports served to the restaurant dashboard.

Each report issues a single fetch to the order listing for the window the
period implies, then hands the snapshot to the analytics engine.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from qrmenu.config.settings import ORDER_FETCH_LIMIT, get_local_timezone
from qrmenu.schemas import DashboardAnalytics, OrdersOverTime, PopularHour, RecentActivity
from qrmenu.services.analytics import (
    RECENT_ORDERS_LIMIT,
    compute_dashboard_summary,
    compute_peak_hours,
    compute_recent_activity,
    compute_time_series,
    reporting_window,
    today_window,
)
from qrmenu.services.order_source import OrderSourceClient


async def get_dashboard_analytics(source: OrderSourceClient, period: str = "today") -> DashboardAnalytics:
    """Headline figures, revenue by day and category split for the dashboard."""

    zone = get_local_timezone()
    now = datetime.now(zone)
    start, end = reporting_window(period, now=now, tz=zone)
    orders = await source.fetch_orders(
        start=start,
        end=end,
        limit=ORDER_FETCH_LIMIT,
        failure_message="Failed to fetch analytics data",
    )
    return compute_dashboard_summary(orders, period, now=now, tz=zone)


async def get_orders_over_time(source: OrderSourceClient, period: str = "week") -> OrdersOverTime:
    zone = get_local_timezone()
    now = datetime.now(zone)
    start, end = reporting_window(period, now=now, tz=zone)
    orders = await source.fetch_orders(
        start=start,
        end=end,
        limit=ORDER_FETCH_LIMIT,
        failure_message="Failed to fetch orders data",
    )
    return compute_time_series(orders, period, now=now, tz=zone)


async def get_popular_hours(source: OrderSourceClient) -> List[PopularHour]:
    """Today's orders per lunch and dinner service hour."""

    zone = get_local_timezone()
    start, _ = today_window(tz=zone)
    orders = await source.fetch_orders(
        start=start,
        limit=ORDER_FETCH_LIMIT,
        failure_message="Failed to fetch popular hours data",
    )
    return compute_peak_hours(orders, tz=zone)


async def get_recent_activity(source: OrderSourceClient, limit: int = RECENT_ORDERS_LIMIT) -> List[RecentActivity]:
    orders = await source.fetch_orders(limit=limit, failure_message="Failed to fetch recent activity")
    return compute_recent_activity(orders, limit, tz=get_local_timezone())


__all__ = [
    "get_dashboard_analytics",
    "get_orders_over_time",
    "get_popular_hours",
    "get_recent_activity",
]
