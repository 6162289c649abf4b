"""
Hourly-Sales Processor: per-hour metrics, daily summary, business periods,
hour-vs-average trends and record validation.

The record must carry exactly 24 hour slots. A different count fails the
domain with HourlyDataError; every other validation finding (no active hours,
zero sales) is reported on the processed tree without failing it.

Version: hourly_sales_v1
"""

from typing import Optional

import numpy as np
import structlog

from opsmetrics.models.enums import HourlyChannel, HourTrend
from opsmetrics.models.envelope import HOURS_PER_DAY, HourlySalesRaw, HourRecordRaw
from opsmetrics.models.hourly import (
    BusinessPeriod,
    ChannelBreakdown,
    DailySalesSummary,
    HourlyChannelBreakdown,
    HourlyValidation,
    HourTrendData,
    PeriodSalesMetrics,
    ProcessedHour,
    ProcessedHourlySales,
)
from opsmetrics.utils.numeric import safe_divide

logger = structlog.get_logger()


# ============================================================================
# Constants
# ============================================================================

# Half-open [start, end) ranges that partition the day
BUSINESS_PERIODS = [
    BusinessPeriod(key="overnight", label="Overnight (12AM-6AM)", start_hour=0, end_hour=6),
    BusinessPeriod(key="morning", label="Morning (6AM-11AM)", start_hour=6, end_hour=11),
    BusinessPeriod(key="lunch", label="Lunch (11AM-2PM)", start_hour=11, end_hour=14),
    BusinessPeriod(key="afternoon", label="Afternoon (2PM-5PM)", start_hour=14, end_hour=17),
    BusinessPeriod(key="dinner", label="Dinner (5PM-9PM)", start_hour=17, end_hour=21),
    BusinessPeriod(key="late_night", label="Late Night (9PM-12AM)", start_hour=21, end_hour=24),
]

# Channel field per hourly channel, in primary-channel tie-break order
CHANNEL_FIELDS = [
    (HourlyChannel.WEBSITE, "Website"),
    (HourlyChannel.MOBILE, "Mobile"),
    (HourlyChannel.PHONE_SALES, "Phone_Sales"),
    (HourlyChannel.DRIVE_THRU, "Drive_Thru"),
    (HourlyChannel.CALL_CENTER, "Call_Center_Agent"),
]

# Summary breakdown key per hourly channel
BREAKDOWN_KEYS = {
    HourlyChannel.PHONE_SALES: "phone",
    HourlyChannel.CALL_CENTER: "call_center",
    HourlyChannel.DRIVE_THRU: "drive_thru",
    HourlyChannel.WEBSITE: "website",
    HourlyChannel.MOBILE: "mobile",
}

HOUR_TREND_BAND = 10.0

NO_ACTIVE_HOURS = "No active sales hours found"
ZERO_SALES = "Total daily sales is zero"


class HourlyDataError(ValueError):
    """The hourly record cannot be processed; carries the itemized validation."""

    def __init__(self, validation: HourlyValidation):
        self.validation = validation
        super().__init__("; ".join(validation.errors))


def primary_channel(record: HourRecordRaw) -> Optional[HourlyChannel]:
    """Channel with the strictly largest sales, first wins; None when nothing sold."""
    best_channel, best_value = CHANNEL_FIELDS[0][0], record.Website
    for channel, field in CHANNEL_FIELDS[1:]:
        value = getattr(record, field)
        if value > best_value:
            best_channel, best_value = channel, value
    return best_channel if best_value > 0 else None


class HourlySalesProcessor:
    """
    Processes the 24-slot hourly sales record for one business day.

    Example:
        >>> processor = HourlySalesProcessor()
        >>> processed = processor.process(raw)
        >>> processed.summary.peak_sales_hour
        12
    """

    def __init__(self):
        self.logger = structlog.get_logger()

    def process(self, raw: HourlySalesRaw) -> ProcessedHourlySales:
        """
        Process the record.

        Args:
            raw: Hourly sales record

        Returns:
            ProcessedHourlySales with validation findings attached

        Raises:
            HourlyDataError: If the record does not carry exactly 24 hours
        """
        validation = self.validate(raw)

        if len(raw.hours) != HOURS_PER_DAY:
            self.logger.warning(
                "hourly_sales_invalid",
                store_id=raw.franchise_store,
                hour_count=len(raw.hours),
                errors=validation.errors,
            )
            raise HourlyDataError(validation)

        hours = [self._process_hour(index, record) for index, record in enumerate(raw.hours)]
        summary = self.summarize(raw, hours)
        periods = self.analyze_periods(hours, summary.total_daily_sales)
        trends = self.analyze_trends(hours)

        self.logger.info(
            "hourly_sales_processed",
            store_id=raw.franchise_store,
            total_daily_sales=round(summary.total_daily_sales, 2),
            peak_sales_hour=summary.peak_sales_hour,
            active_hours=summary.active_hours,
            is_valid=validation.is_valid,
        )

        return ProcessedHourlySales(
            hours=hours,
            summary=summary,
            periods=periods,
            trends=trends,
            validation=validation,
        )

    # =========================================================================
    # Hours
    # =========================================================================

    @staticmethod
    def _process_hour(index: int, record: HourRecordRaw) -> ProcessedHour:
        digital = record.Website + record.Mobile
        return ProcessedHour(
            hour=index,
            total_sales=record.Total_Sales,
            phone_sales=record.Phone_Sales,
            call_center_sales=record.Call_Center_Agent,
            drive_thru_sales=record.Drive_Thru,
            website_sales=record.Website,
            mobile_sales=record.Mobile,
            order_count=record.Order_Count,
            has_activity=record.Total_Sales > 0,
            average_order_value=safe_divide(record.Total_Sales, record.Order_Count),
            digital_sales_percentage=(
                digital / record.Total_Sales * 100 if record.Total_Sales > 0 else 0.0
            ),
            primary_channel=primary_channel(record),
        )

    # =========================================================================
    # Summary
    # =========================================================================

    def summarize(self, raw: HourlySalesRaw, hours: list[ProcessedHour]) -> DailySalesSummary:
        """Daily roll-up with peak hour and per-channel breakdown."""
        sales = np.array([h.total_sales for h in hours], dtype=np.float64)
        orders = np.array([h.order_count for h in hours], dtype=np.float64)
        total_sales = float(sales.sum())
        total_orders = float(orders.sum())

        # Peak starts at hour 0 / 0.0 and moves only on a strictly larger hour
        peak_hour, peak_amount = 0, 0.0
        if sales.size and sales.max() > 0:
            peak_hour = int(np.argmax(sales))
            peak_amount = float(sales[peak_hour])

        breakdown = self._channel_breakdown(hours, total_sales)

        return DailySalesSummary(
            store_id=raw.franchise_store,
            business_date=raw.business_date,
            total_daily_sales=total_sales,
            total_order_count=total_orders,
            average_order_value=safe_divide(total_sales, total_orders),
            peak_sales_hour=peak_hour,
            peak_sales_amount=peak_amount,
            active_hours=sum(1 for h in hours if h.has_activity),
            digital_sales_percentage=(
                (breakdown.website.amount + breakdown.mobile.amount) / total_sales * 100
                if total_sales > 0 else 0.0
            ),
            channel_breakdown=breakdown,
        )

    @staticmethod
    def _channel_breakdown(hours: list[ProcessedHour], total_sales: float) -> HourlyChannelBreakdown:
        amounts = {
            "phone": sum(h.phone_sales for h in hours),
            "call_center": sum(h.call_center_sales for h in hours),
            "drive_thru": sum(h.drive_thru_sales for h in hours),
            "website": sum(h.website_sales for h in hours),
            "mobile": sum(h.mobile_sales for h in hours),
        }
        # Orders are attributed wholesale to each hour's primary channel
        order_counts = dict.fromkeys(amounts, 0.0)
        for hour in hours:
            if hour.primary_channel is not None:
                order_counts[BREAKDOWN_KEYS[hour.primary_channel]] += hour.order_count

        return HourlyChannelBreakdown(**{
            key: ChannelBreakdown(
                amount=amount,
                percentage=amount / total_sales * 100 if total_sales > 0 else 0.0,
                order_count=order_counts[key],
                average_order_value=safe_divide(amount, order_counts[key]),
            )
            for key, amount in amounts.items()
        })

    # =========================================================================
    # Periods and trends
    # =========================================================================

    @staticmethod
    def analyze_periods(hours: list[ProcessedHour], daily_total: float) -> list[PeriodSalesMetrics]:
        """Aggregates for each business period."""
        results = []
        for period in BUSINESS_PERIODS:
            in_period = [h for h in hours if period.contains(h.hour)]
            total_sales = sum(h.total_sales for h in in_period)
            total_orders = sum(h.order_count for h in in_period)
            active = sum(1 for h in in_period if h.has_activity)

            peak = in_period[0] if in_period else None
            for hour in in_period[1:]:
                if hour.total_sales > peak.total_sales:
                    peak = hour

            results.append(PeriodSalesMetrics(
                period=period,
                total_sales=total_sales,
                total_orders=total_orders,
                average_order_value=safe_divide(total_sales, total_orders),
                percentage_of_daily=safe_divide(total_sales, daily_total) * 100,
                peak_hour=peak.hour if peak else period.start_hour,
                sales_per_hour=safe_divide(total_sales, active),
            ))
        return results

    @staticmethod
    def analyze_trends(hours: list[ProcessedHour]) -> list[HourTrendData]:
        """Each hour's deviation from the day's hourly average."""
        sales = np.array([h.total_sales for h in hours], dtype=np.float64)
        daily_average = float(sales.sum()) / HOURS_PER_DAY

        trends = []
        for hour in hours:
            change = 0.0
            if daily_average > 0:
                change = (hour.total_sales - daily_average) / daily_average * 100

            if change > HOUR_TREND_BAND:
                direction = HourTrend.UP
            elif change < -HOUR_TREND_BAND:
                direction = HourTrend.DOWN
            else:
                direction = HourTrend.STABLE

            trends.append(HourTrendData(
                hour=hour.hour,
                current_sales=hour.total_sales,
                percentage_change=change,
                trend=direction,
                above_average=hour.total_sales > daily_average,
            ))
        return trends

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def validate(raw: HourlySalesRaw) -> HourlyValidation:
        """Itemized findings; only a wrong hour count makes the record unusable."""
        errors: list[str] = []
        warnings: list[str] = []

        if len(raw.hours) != HOURS_PER_DAY:
            errors.append(f"Expected {HOURS_PER_DAY} hours of data, got {len(raw.hours)}")

        if not any(record.Total_Sales > 0 for record in raw.hours):
            errors.append(NO_ACTIVE_HOURS)

        if sum(record.Total_Sales for record in raw.hours) == 0:
            warnings.append(ZERO_SALES)

        non_empty = sum(1 for record in raw.hours if not record.is_empty())
        completeness = min(100.0, non_empty / HOURS_PER_DAY * 100)

        return HourlyValidation(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            completeness=completeness,
        )
