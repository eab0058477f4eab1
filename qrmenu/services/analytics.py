"""Sales analytics derived from snapshots of the order listing.

All functions here are pure. They only read the orders they are given and
the ``now``/``tz`` they are handed (falling back to the wall clock and the
configured timezone), so they can run concurrently for any number of
requests. Calendar-day boundaries are taken in ``tz``; naive timestamps are
read as local time in that zone.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from qrmenu.config.settings import get_local_timezone
from qrmenu.schemas import (
    CategorySale,
    DashboardAnalytics,
    DishInfo,
    OrderRecord,
    OrdersOverTime,
    OrdersOverTimePoint,
    PopularHour,
    RecentActivity,
    RecentOrder,
    RevenueByDay,
    RevenuePoint,
)

logger = logging.getLogger(__name__)

PERIOD_DAYS: Mapping[str, int] = MappingProxyType({"today": 1, "week": 7, "month": 30})
SERIES_PERIODS = ("week", "month")

# First match wins, in declaration order.
CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Mains", ("burger", "steak", "pasta", "pizza", "curry", "salmon", "chicken")),
    ("Drinks", ("wine", "beer", "juice", "soda", "water", "coffee", "tea")),
    ("Starters", ("salad", "wings", "soup", "bread", "appetizer")),
    ("Desserts", ("cake", "ice cream", "tiramisu", "pudding", "dessert")),
)
DEFAULT_CATEGORY = "Mains"

PEAK_HOURS: Tuple[Tuple[int, str], ...] = (
    (11, "11am"),
    (12, "12pm"),
    (13, "1pm"),
    (14, "2pm"),
    (18, "6pm"),
    (19, "7pm"),
    (20, "8pm"),
    (21, "9pm"),
)

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
STATUS_LABELS: Mapping[str, str] = MappingProxyType({"served": "Completed", "cancelled": "Cancelled"})
DEFAULT_STATUS_LABEL = "Pending"

RECENT_ORDERS_LIMIT = 10
UNKNOWN_TABLE = "Unknown"
GUEST_CUSTOMER = "Guest"
PAYMENT_PLACEHOLDER = "Card"
JUST_NOW = "Just now"


def parse_orders(raw_orders: Optional[Iterable[Any]]) -> List[OrderRecord]:
    """Validate raw order rows, skipping the ones that cannot be used."""

    orders: List[OrderRecord] = []
    for position, raw in enumerate(raw_orders or ()):
        if isinstance(raw, OrderRecord):
            orders.append(raw)
            continue
        try:
            orders.append(OrderRecord.model_validate(raw))
        except ValidationError as exc:
            identifier = raw.get("_id") or raw.get("id") if isinstance(raw, Mapping) else None
            logger.warning(
                "Skipping malformed order %s at position %s (%s validation errors)",
                identifier,
                position,
                exc.error_count(),
            )
    return orders


def compute_dashboard_summary(
    orders: Iterable[Any],
    period: str = "today",
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> DashboardAnalytics:
    """Build the dashboard headline figures from a snapshot of orders.

    Day-over-day figures compare today with yesterday whatever the period;
    ``period`` only sizes the revenue-by-day series. Revenue by day and the
    category breakdown cover the whole snapshot.
    """

    days = _period_days(period, PERIOD_DAYS)
    zone = tz or get_local_timezone()
    current = _resolve_now(now, zone)
    records = parse_orders(orders)

    today_start = _day_start(current.date(), zone)
    yesterday_start = _day_start(current.date() - timedelta(days=1), zone)
    today_orders: List[OrderRecord] = []
    yesterday_orders: List[OrderRecord] = []
    for order in records:
        created = _localize(order.created_at, zone)
        if created >= today_start:
            today_orders.append(order)
        elif created >= yesterday_start:
            yesterday_orders.append(order)

    orders_change, orders_positive = _format_change(len(today_orders), len(yesterday_orders))
    revenue_today = sum(order.total_price for order in today_orders)
    revenue_yesterday = sum(order.total_price for order in yesterday_orders)
    revenue_change, revenue_positive = _format_change(revenue_today, revenue_yesterday)

    dish_counts: Dict[str, int] = {}
    for order in today_orders:
        for item in order.items:
            dish_counts[item.name] = dish_counts.get(item.name, 0) + item.quantity

    latest_first = sorted(today_orders, key=lambda order: _localize(order.created_at, zone), reverse=True)
    recent_orders = [
        RecentOrder(
            id=order.id,
            table_number=order.table_label or UNKNOWN_TABLE,
            customer_name=order.customer_name or GUEST_CUSTOMER,
            items=[item.name for item in order.items],
            total=order.total_price,
            status=order.status,
            timestamp=format_relative_time(order.created_at, now=current, tz=zone),
            created_at=order.created_at,
        )
        for order in latest_first[:RECENT_ORDERS_LIMIT]
    ]

    revenue_by_day = [
        RevenueByDay(label=bucket["label"], date_iso=bucket["day"], revenue=_round_money(bucket["revenue"]))
        for bucket in _bucket_by_day(records, days, current, zone)
    ]

    return DashboardAnalytics(
        period=period,
        generated_at=current,
        total_orders_today=len(today_orders),
        orders_change=orders_change,
        orders_change_positive=orders_positive,
        revenue_today=f"{_round_money(revenue_today):.2f}",
        revenue_change=revenue_change,
        revenue_change_positive=revenue_positive,
        pending_orders=sum(1 for order in today_orders if order.status == "pending"),
        popular_dish=_pick_dish(dish_counts, max),
        least_ordered_dish=_pick_dish(dish_counts, min),
        recent_orders=recent_orders,
        revenue_by_day=revenue_by_day,
        category_sales=compute_category_sales(records),
    )


def compute_time_series(
    orders: Iterable[Any],
    period: str = "week",
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> OrdersOverTime:
    """Order counts and revenue per calendar day over the last week or month."""

    days = _period_days(period, {name: PERIOD_DAYS[name] for name in SERIES_PERIODS})
    zone = tz or get_local_timezone()
    current = _resolve_now(now, zone)
    buckets = _bucket_by_day(parse_orders(orders), days, current, zone)
    return OrdersOverTime(
        orders_over_time=[
            OrdersOverTimePoint(label=bucket["label"], date_iso=bucket["day"], orders=bucket["orders"])
            for bucket in buckets
        ],
        revenue_data=[
            RevenuePoint(label=bucket["label"], date_iso=bucket["day"], revenue=_round_money(bucket["revenue"]))
            for bucket in buckets
        ],
    )


def classify_item(name: str) -> str:
    """Return the sales category of a dish or drink name."""

    lowered = (name or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def compute_category_sales(orders: Iterable[Any]) -> List[CategorySale]:
    sales: Dict[str, float] = {category: 0.0 for category, _ in CATEGORY_KEYWORDS}
    for order in parse_orders(orders):
        for item in order.items:
            sales[classify_item(item.name)] += item.unit_price * item.quantity

    total = sum(sales.values())
    return [
        CategorySale(
            name=category,
            value=_round_money(value),
            percentage=_round_half_up(value / total * 100) if total > 0 else 0,
        )
        for category, value in sales.items()
    ]


def compute_peak_hours(
    orders: Iterable[Any],
    *,
    tz: Optional[tzinfo] = None,
) -> List[PopularHour]:
    """Count orders per lunch and dinner service hour.

    Orders placed outside the listed hours are left out. The caller decides
    which day the snapshot covers.
    """

    zone = tz or get_local_timezone()
    labels = dict(PEAK_HOURS)
    counts: Dict[str, int] = {label: 0 for _, label in PEAK_HOURS}
    for order in parse_orders(orders):
        label = labels.get(_localize(order.created_at, zone).hour)
        if label is not None:
            counts[label] += 1
    return [PopularHour(hour=label, orders=count) for label, count in counts.items()]


def compute_recent_activity(
    orders: Iterable[Any],
    limit: Optional[int] = RECENT_ORDERS_LIMIT,
    *,
    tz: Optional[tzinfo] = None,
) -> List[RecentActivity]:
    """Project orders onto activity table rows, keeping the source order."""

    zone = tz or get_local_timezone()
    records = parse_orders(orders)
    if limit is not None:
        records = records[: max(limit, 0)]
    return [
        RecentActivity(
            id=order.id,
            day=_localize(order.created_at, zone).astimezone(timezone.utc).date().isoformat(),
            table=order.table_label or UNKNOWN_TABLE,
            items=", ".join(f"{item.name} x{item.quantity}" for item in order.items),
            amount=order.total_price,
            payment=PAYMENT_PLACEHOLDER,
            status=STATUS_LABELS.get(order.status, DEFAULT_STATUS_LABEL),
        )
        for order in records
    ]


def format_relative_time(
    timestamp: Any,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """Human label such as ``5 mins ago``; every unit is floored."""

    if not timestamp:
        return JUST_NOW
    moment = timestamp if isinstance(timestamp, datetime) else _parse_timestamp(str(timestamp))
    if moment is None:
        return JUST_NOW

    zone = tz or get_local_timezone()
    current = _resolve_now(now, zone)
    minutes = int((current - _localize(moment, zone)).total_seconds() // 60)
    if minutes < 1:
        return JUST_NOW
    if minutes == 1:
        return "1 min ago"
    if minutes < 60:
        return f"{minutes} mins ago"

    hours = minutes // 60
    if hours == 1:
        return "1 hour ago"
    if hours < 24:
        return f"{hours} hours ago"

    days = hours // 24
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


def reporting_window(
    period: str,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Tuple[datetime, datetime]:
    """Date range to request from the order listing for ``period``.

    The "today" window starts at yesterday's midnight so the day-over-day
    comparison has data to compare against.
    """

    days = _period_days(period, PERIOD_DAYS)
    zone = tz or get_local_timezone()
    current = _resolve_now(now, zone)
    if period == "today":
        return _day_start(current.date() - timedelta(days=1), zone), current
    return current - timedelta(days=days), current


def today_window(
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Tuple[datetime, datetime]:
    zone = tz or get_local_timezone()
    current = _resolve_now(now, zone)
    return _day_start(current.date(), zone), current


def _bucket_by_day(
    orders: List[OrderRecord],
    days: int,
    current: datetime,
    zone: tzinfo,
) -> List[Dict[str, Any]]:
    # Seeded oldest first so empty days still show up in order.
    buckets: Dict[date, Dict[str, Any]] = {}
    for offset in range(days - 1, -1, -1):
        day = current.date() - timedelta(days=offset)
        buckets[day] = {"day": day, "label": WEEKDAY_LABELS[day.weekday()], "orders": 0, "revenue": 0.0}

    for order in orders:
        bucket = buckets.get(_localize(order.created_at, zone).date())
        if bucket is None:
            continue
        bucket["orders"] += 1
        bucket["revenue"] += order.total_price
    return list(buckets.values())


def _pick_dish(dish_counts: Dict[str, int], selector) -> DishInfo:
    if not dish_counts:
        return DishInfo(name="N/A", count=0)
    # max/min keep the first entry among equals, i.e. the first dish ordered.
    name, count = selector(dish_counts.items(), key=lambda entry: entry[1])
    return DishInfo(name=name, count=count)


def _format_change(current: float, previous: float) -> Tuple[str, bool]:
    if previous <= 0:
        return "+0%", True
    text = f"{(current - previous) / previous * 100:.1f}"
    if text == "-0.0":
        text = "0.0"
    if text.startswith("-"):
        return f"{text}%", False
    return f"+{text}%", True


def _period_days(period: str, allowed: Mapping[str, int]) -> int:
    try:
        return allowed[period]
    except KeyError:
        raise ValueError(f"Unsupported reporting period {period!r}; expected one of {sorted(allowed)}") from None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round_money(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def _resolve_now(now: Optional[datetime], zone: tzinfo) -> datetime:
    if now is None:
        return datetime.now(zone)
    return _localize(now, zone)


def _localize(value: datetime, zone: tzinfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def _day_start(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    except ValueError:
        return None


__all__ = [
    "CATEGORY_KEYWORDS",
    "PEAK_HOURS",
    "PERIOD_DAYS",
    "classify_item",
    "compute_category_sales",
    "compute_dashboard_summary",
    "compute_peak_hours",
    "compute_recent_activity",
    "compute_time_series",
    "format_relative_time",
    "parse_orders",
    "reporting_window",
    "today_window",
]
