"""
Derived read-only view models.

Views are computed on demand from a ProcessedResult and never stored.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from .base import ValueModel
from .enums import (
    AlertCategory,
    AlertSeverity,
    DeliveryPlatform,
    ExportFormat,
    PerformanceLevel,
    SalesChannelType,
    TrendDirection,
)


# ============================================================================
# Platform views
# ============================================================================


class RankingKeyMetrics(ValueModel):
    rating: float
    on_track_percentage: float
    critical_issues: int


class PlatformRanking(ValueModel):
    """One platform's position in the performance ranking (rank 1 is best)."""

    platform: DeliveryPlatform
    score: float
    rank: int = Field(ge=1)
    level: PerformanceLevel
    key_metrics: RankingKeyMetrics


class PlatformStanding(ValueModel):
    """Best or worst platform in a comparison with up to three KPI labels."""

    platform: DeliveryPlatform
    score: float
    highlights: list[str] = Field(default_factory=list)


class KPIGap(ValueModel):
    """Absolute difference of one numeric KPI between best and worst platform."""

    metric: str
    best_value: float
    worst_value: float
    gap: float = Field(ge=0.0)


class PlatformComparison(ValueModel):
    """
    Best vs worst platform.

    best.highlights are on-track KPI labels (strengths); worst.highlights are
    KPI labels that are not on track (weaknesses).
    """

    best: PlatformStanding
    worst: PlatformStanding
    gaps: list[KPIGap] = Field(default_factory=list)


class ActionItem(ValueModel):
    action: str
    impact: str
    effort: str
    timeline: str


class PlatformRecommendations(ValueModel):
    """Improvement focus for one platform."""

    platform: DeliveryPlatform
    priority: str
    focus_areas: list[str] = Field(default_factory=list)
    actions: list[ActionItem] = Field(default_factory=list)
    expected_outcomes: list[str] = Field(default_factory=list)


# ============================================================================
# Alert views
# ============================================================================


class AlertSummary(ValueModel):
    """Counts of the current alerts."""

    total: int = 0
    by_severity: dict[AlertSeverity, int] = Field(default_factory=dict)
    by_platform: dict[DeliveryPlatform, int] = Field(default_factory=dict)
    by_category: dict[AlertCategory, int] = Field(default_factory=dict)
    most_critical_platform: Optional[DeliveryPlatform] = None


# ============================================================================
# Benchmark views
# ============================================================================


class BenchmarkGap(ValueModel):
    """A metric against a benchmark, in percentage points."""

    current: float
    benchmark: float
    gap: float
    status: str


class TargetGap(ValueModel):
    current: float
    target: float
    gap: float
    on_track: bool


class BenchmarkComparison(ValueModel):
    """
    Labor cost and customer service against the industry profile, labor cost
    against the target profile.

    overall_score averages 100 per "above", 90 per "at" and 70 otherwise.
    """

    vs_industry: dict[str, BenchmarkGap]
    vs_targets: dict[str, TargetGap]
    overall_score: float


# ============================================================================
# Store operations views
# ============================================================================


class ChannelRanking(ValueModel):
    """
    One sales channel's position, ranked by share plus order value.

    score is percentage + average_order_value / 50. growth stays 0 because a
    single record carries no channel history.
    """

    channel: SalesChannelType
    rank: int = Field(ge=1)
    score: float
    revenue: float
    growth: float = 0.0
    efficiency: float
    strengths: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)


class DataCompleteness(ValueModel):
    """Which store-operations metric groups are available (100) or not (0)."""

    overall: float
    by_category: dict[str, float]
    missing_fields: list[str] = Field(default_factory=list)
    quality: str
    recommendations: list[str] = Field(default_factory=list)


class ReductionOpportunity(ValueModel):
    category: str
    potential: float
    effort: str


class WasteAnalysis(ValueModel):
    """Waste totals split by an estimated category mix."""

    total_waste: float
    waste_percentage: float
    waste_by_category: dict[str, float]
    trend: TrendDirection
    causes: list[str] = Field(default_factory=list)
    reduction_opportunities: list[ReductionOpportunity] = Field(default_factory=list)


class LaborEfficiencyAnalysis(ValueModel):
    current_efficiency: float
    target_efficiency: float
    gap: float
    cost_per_hour: float
    productivity_score: float
    optimization_areas: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class CostSavingsOpportunity(ValueModel):
    """An estimated saving, in currency, with the work it takes."""

    category: AlertCategory
    description: str
    potential: float
    effort: str
    timeline: str
    impact: str
    requirements: list[str] = Field(default_factory=list)


class ExpenseOptimization(ValueModel):
    """
    Savings opportunities rolled up.

    roi is total savings as a percentage of daily sales.
    """

    total_savings: float = 0.0
    by_category: dict[AlertCategory, float] = Field(default_factory=dict)
    quick_wins: list[str] = Field(default_factory=list)
    long_term_initiatives: list[str] = Field(default_factory=list)
    roi: float = 0.0
    opportunities: list[CostSavingsOpportunity] = Field(default_factory=list)


class AlertImpactAnalysis(ValueModel):
    """Summed |variance| of categorized alerts."""

    total_impact: float = 0.0
    by_category: dict[AlertCategory, float] = Field(default_factory=dict)
    urgent_count: int = 0
    average_resolution_time: float = 24.0
    resource_requirements: list[str] = Field(default_factory=list)


# ============================================================================
# Hourly views
# ============================================================================


class PeakSalesInfo(ValueModel):
    peak_hour: int
    peak_amount: float
    peak_orders: float
    time_description: str
    percentage_of_daily: float


class PeriodPerformance(ValueModel):
    """
    Aggregates over the inclusive hour range [start_hour, end_hour].

    vs_daily compares the range's sales per hour with the daily hourly
    average, in percent.
    """

    start_hour: int
    end_hour: int
    total_sales: float
    total_orders: float
    average_order_value: float
    sales_per_hour: float
    active_hours: int
    best_hour: int
    vs_daily: float


class HourlyDataQuality(ValueModel):
    """
    Hourly record quality.

    consistency is 100 minus the coefficient of variation (in percent) of the
    active hours' sales, floored at 0. An anomaly is an hour selling more than
    three times away from its neighbours' average.
    """

    overall_score: float = 0.0
    completeness: float = 0.0
    consistency: float = 0.0
    anomalies: int = 0
    issues: list[str] = Field(default_factory=list)
    level: str = "Critical"


class PlatformDataQuality(ValueModel):
    """Coverage of the platform record: reported scores and active platforms."""

    overall_score: float = 0.0
    completeness: float = 0.0
    metric_coverage: float = 0.0
    platform_coverage: float = 0.0
    issues: list[str] = Field(default_factory=list)
    level: str = "Poor"


# ============================================================================
# Exports
# ============================================================================


class ExportDocument(ValueModel):
    """A plain structured document derived from the current result."""

    format: ExportFormat
    filename: str
    export_date: datetime
    store: str
    date: str
    data: dict[str, Any]
