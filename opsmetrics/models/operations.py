"""
Processed store-operations models.

A daily (and optionally weekly) record is turned into five sub-trees plus a
weighted composite grade. Weekly results also carry trend analyses against
the daily record.
"""

from typing import Optional

from pydantic import Field

from .base import ValueModel
from .enums import (
    ChannelPerformanceLevel,
    CostControlGrade,
    OperationalGrade,
    PerformanceGrade,
    QualityGrade,
    SalesChannelType,
    TrendDirection,
    TrendSignificance,
)


class FinancialMetrics(ValueModel):
    """Sales, tips, cash and labor figures with a labor-variance grade."""

    total_sales: float = 0.0
    cash_sales: float = 0.0
    digital_sales: float = 0.0
    average_ticket: float = 0.0
    tips: float = 0.0
    cash_variance: float = 0.0
    labor_cost_percentage: float = 0.0
    revenue_per_customer: float = 0.0
    performance_grade: PerformanceGrade = PerformanceGrade.D


class OperationalMetrics(ValueModel):
    """
    Throughput and portal figures.

    efficiency_score is an additive weighted sum with no upper bound; with
    ratio inputs above 1 it can exceed 100.
    """

    customer_count: float = 0.0
    customer_count_percentage: float = 0.0
    portal_utilization: float = 0.0
    portal_on_time_percentage: float = 0.0
    modification_rate: float = 0.0
    refund_rate: float = 0.0
    efficiency_score: float = 0.0


class ChannelPerformance(ValueModel):
    """Sales channel bucket."""

    channel: SalesChannelType
    sales: float = Field(default=0.0, ge=0.0)
    percentage: float = 0.0
    orders: int = 0
    average_order_value: float = 0.0
    trend: TrendDirection = TrendDirection.STABLE
    performance_level: ChannelPerformanceLevel = ChannelPerformanceLevel.AVERAGE


class SalesChannelMetrics(ValueModel):
    """Four channel buckets whose percentages partition 100."""

    traditional: ChannelPerformance
    digital: ChannelPerformance
    delivery: ChannelPerformance
    phone: ChannelPerformance
    top_channel: SalesChannelType
    digital_adoption_rate: float = 0.0

    @property
    def channels(self) -> list[ChannelPerformance]:
        return [self.traditional, self.digital, self.delivery, self.phone]


class QualityMetrics(ValueModel):
    """Service quality figures."""

    customer_service_score: float = 0.0
    order_accuracy: float = Field(default=0.0, ge=0.0)
    service_consistency: float = 0.0
    quality_grade: QualityGrade = QualityGrade.CRITICAL


class CostControlMetrics(ValueModel):
    """Waste and labor efficiency figures."""

    total_waste: float = 0.0
    waste_percentage: float = 0.0
    labor_efficiency: float = Field(default=0.0, ge=0.0)
    cost_control_grade: CostControlGrade = CostControlGrade.CRITICAL


class StoreOperationsMetrics(ValueModel):
    """The five sub-trees and composite grade for one record."""

    financial: FinancialMetrics
    operational: OperationalMetrics
    sales_channels: SalesChannelMetrics
    quality: QualityMetrics
    cost_control: CostControlMetrics
    overall_grade: OperationalGrade
    composite_score: float = 0.0


class TrendAnalysis(ValueModel):
    """Variance of a daily value against its weekly daily-equivalent baseline."""

    metric: str
    current: float
    previous: float
    percentage_change: float
    direction: TrendDirection
    significance: TrendSignificance


class WeeklyTrends(ValueModel):
    """Trend analyses for the tracked store metrics."""

    sales_trend: TrendAnalysis
    labor_trend: TrendAnalysis
    customer_trend: TrendAnalysis
    waste_trend: TrendAnalysis
    digital_trend: TrendAnalysis

    @property
    def all(self) -> list[TrendAnalysis]:
        return [
            self.sales_trend,
            self.labor_trend,
            self.customer_trend,
            self.waste_trend,
            self.digital_trend,
        ]


class WeeklyOperationsMetrics(StoreOperationsMetrics):
    """Weekly record processed like a daily one, plus trends."""

    trends: WeeklyTrends


class SalesProjection(ValueModel):
    """
    Linear extrapolation of daily sales.

    The line runs through the weekly daily-equivalent baseline (period 0) and
    the current day (period 1).
    """

    baseline: float
    current: float
    slope: float
    next_period: float = Field(ge=0.0)
    horizon_periods: int = Field(ge=1)
    horizon_projection: float = Field(ge=0.0)
    direction: TrendDirection


class ProcessedStoreOperations(ValueModel):
    """Processed store-operations tree."""

    daily: StoreOperationsMetrics
    weekly: Optional[WeeklyOperationsMetrics] = None
    projection: Optional[SalesProjection] = None

    @property
    def overall_grade(self) -> OperationalGrade:
        return self.daily.overall_grade
