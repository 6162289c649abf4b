"""
Processed hourly-sales models.
"""

from typing import Optional

from pydantic import Field

from .base import ValueModel
from .enums import HourlyChannel, HourTrend, HourlySort


class ProcessedHour(ValueModel):
    """One processed hour (index 0-23)."""

    hour: int = Field(ge=0, le=23)
    total_sales: float = 0.0
    phone_sales: float = 0.0
    call_center_sales: float = 0.0
    drive_thru_sales: float = 0.0
    website_sales: float = 0.0
    mobile_sales: float = 0.0
    order_count: float = 0.0
    has_activity: bool = False
    average_order_value: float = 0.0
    digital_sales_percentage: float = 0.0
    primary_channel: Optional[HourlyChannel] = None


class ChannelBreakdown(ValueModel):
    """Daily totals for one hourly channel."""

    amount: float = 0.0
    percentage: float = 0.0
    order_count: float = 0.0
    average_order_value: float = 0.0


class HourlyChannelBreakdown(ValueModel):
    """Per-channel breakdown; order counts follow each hour's primary channel."""

    phone: ChannelBreakdown
    call_center: ChannelBreakdown
    drive_thru: ChannelBreakdown
    website: ChannelBreakdown
    mobile: ChannelBreakdown


class DailySalesSummary(ValueModel):
    """Daily roll-up of the 24 hours."""

    store_id: str
    business_date: str
    total_daily_sales: float = 0.0
    total_order_count: float = 0.0
    average_order_value: float = 0.0
    peak_sales_hour: int = 0
    peak_sales_amount: float = 0.0
    active_hours: int = 0
    digital_sales_percentage: float = 0.0
    channel_breakdown: HourlyChannelBreakdown


class BusinessPeriod(ValueModel):
    """A named half-open hour range [start_hour, end_hour)."""

    key: str
    label: str
    start_hour: int
    end_hour: int

    def contains(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour


class PeriodSalesMetrics(ValueModel):
    """Aggregates for one business period."""

    period: BusinessPeriod
    total_sales: float = 0.0
    total_orders: float = 0.0
    average_order_value: float = 0.0
    percentage_of_daily: float = 0.0
    peak_hour: int
    sales_per_hour: float = 0.0


class HourTrendData(ValueModel):
    """Deviation of one hour from the daily hourly average."""

    hour: int
    current_sales: float
    percentage_change: float
    trend: HourTrend
    above_average: bool


class HourlyValidation(ValueModel):
    """Itemized validation outcome for the hourly record."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    completeness: float = Field(default=0.0, ge=0.0, le=100.0)


class ProcessedHourlySales(ValueModel):
    """Processed hourly-sales tree."""

    hours: list[ProcessedHour]
    summary: DailySalesSummary
    periods: list[PeriodSalesMetrics]
    trends: list[HourTrendData]
    validation: HourlyValidation


class HourlyFilter(ValueModel):
    """View filter over processed hours. Unset bounds do not filter."""

    min_sales: Optional[float] = None
    max_sales: Optional[float] = None
    min_orders: Optional[float] = None
    max_orders: Optional[float] = None
    include_hours: Optional[list[int]] = None
    exclude_hours: Optional[list[int]] = None
    active_only: bool = False
    sort: HourlySort = HourlySort.HOUR_ASC
