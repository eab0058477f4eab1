from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DashboardPeriod = Literal["today", "week", "month"]
SeriesPeriod = Literal["week", "month"]


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., ge=0, alias="price")


class OrderRecord(BaseModel):
    """Order as listed by the order API, read-only for the analytics."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: str = Field(..., alias="_id")
    created_at: datetime = Field(..., alias="createdAt")
    total_price: float = Field(..., ge=0, alias="totalPrice")
    status: Optional[str] = None
    table_label: Optional[str] = Field(default=None, alias="tableLabel")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    items: List[LineItem] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_wire_fields(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        data = dict(value)
        if "_id" not in data and "id" in data:
            data["_id"] = data.pop("id")
        table = data.get("tableId")
        if "tableLabel" not in data and "table_label" not in data and isinstance(table, Mapping):
            data["tableLabel"] = table.get("tableName")
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ReportModel(BaseModel):
    """Base for payloads sent to the dashboard, serialised in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DishInfo(ReportModel):
    name: str
    count: int


class RecentOrder(ReportModel):
    id: str
    table_number: str
    customer_name: str
    items: List[str]
    total: float
    status: Optional[str]
    timestamp: str
    created_at: datetime


class RevenueByDay(ReportModel):
    label: str = Field(..., alias="date")
    date_iso: date
    revenue: float


class CategorySale(ReportModel):
    name: str
    value: float
    percentage: int


class DashboardAnalytics(ReportModel):
    period: DashboardPeriod
    generated_at: datetime
    total_orders_today: int
    orders_change: str
    orders_change_positive: bool
    revenue_today: str
    revenue_change: str
    revenue_change_positive: bool
    pending_orders: int
    popular_dish: DishInfo
    least_ordered_dish: DishInfo
    recent_orders: List[RecentOrder]
    revenue_by_day: List[RevenueByDay]
    category_sales: List[CategorySale]


class OrdersOverTimePoint(ReportModel):
    label: str = Field(..., alias="date")
    date_iso: date
    orders: int


class RevenuePoint(ReportModel):
    label: str = Field(..., alias="date")
    date_iso: date
    revenue: float


class OrdersOverTime(ReportModel):
    orders_over_time: List[OrdersOverTimePoint]
    revenue_data: List[RevenuePoint]


class PopularHour(ReportModel):
    hour: str
    orders: int


class RecentActivity(ReportModel):
    id: str
    day: str = Field(..., alias="date")
    table: str
    items: str
    amount: float
    payment: str
    status: str
