from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query

from qrmenu.config.settings import ORDER_FETCH_LIMIT
from qrmenu.schemas import (
    DashboardAnalytics,
    DashboardPeriod,
    OrdersOverTime,
    PopularHour,
    RecentActivity,
    SeriesPeriod,
)
from qrmenu.services import dashboard_service
from qrmenu.services.auth_utils import extract_bearer_token
from qrmenu.services.order_source import OrderSourceClient, OrderSourceError, raise_order_source_error

router = APIRouter()


async def get_order_source(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> OrderSourceClient:
    """Order listing client acting with the caller's credentials."""

    return OrderSourceClient(extract_bearer_token(authorization))


@router.get("/dashboard", response_model=DashboardAnalytics)
async def dashboard_analytics_endpoint(
    period: DashboardPeriod = Query(default="today"),
    source: OrderSourceClient = Depends(get_order_source),
) -> DashboardAnalytics:
    try:
        return await dashboard_service.get_dashboard_analytics(source, period)
    except OrderSourceError as exc:
        raise_order_source_error(exc, context="Error fetching dashboard analytics")


@router.get("/orders-over-time", response_model=OrdersOverTime)
async def orders_over_time_endpoint(
    period: SeriesPeriod = Query(default="week"),
    source: OrderSourceClient = Depends(get_order_source),
) -> OrdersOverTime:
    try:
        return await dashboard_service.get_orders_over_time(source, period)
    except OrderSourceError as exc:
        raise_order_source_error(exc, context="Error fetching orders over time")


@router.get("/popular-hours", response_model=List[PopularHour])
async def popular_hours_endpoint(
    source: OrderSourceClient = Depends(get_order_source),
) -> List[PopularHour]:
    try:
        return await dashboard_service.get_popular_hours(source)
    except OrderSourceError as exc:
        raise_order_source_error(exc, context="Error fetching popular hours")


@router.get("/recent-activity", response_model=List[RecentActivity])
async def recent_activity_endpoint(
    limit: int = Query(default=10, ge=1, le=ORDER_FETCH_LIMIT),
    source: OrderSourceClient = Depends(get_order_source),
) -> List[RecentActivity]:
    try:
        return await dashboard_service.get_recent_activity(source, limit)
    except OrderSourceError as exc:
        raise_order_source_error(exc, context="Error fetching recent activity")
