"""
Computed views over processed results.

Plain functions of processed data (plus configuration or benchmarks where a
view needs them). Nothing here mutates or caches; every call recomputes.
"""

from collections import Counter
from typing import Iterable, Optional

import numpy as np
import structlog

from opsmetrics.models.alerts import Alert
from opsmetrics.models.analysis_config import HourlyAnalysisConfig, PerformanceBenchmarks
from opsmetrics.models.enums import (
    AlertCategory,
    AlertPriority,
    DeliveryPlatform,
    HourlySort,
    TrackingStatus,
    TrendDirection,
)
from opsmetrics.models.envelope import HOURS_PER_DAY, PlatformScores
from opsmetrics.models.hourly import HourlyFilter, ProcessedHour, ProcessedHourlySales
from opsmetrics.models.operations import (
    ProcessedStoreOperations,
    SalesChannelMetrics,
    StoreOperationsMetrics,
)
from opsmetrics.models.platform import PlatformFilter, PlatformMetrics, ProcessedPlatformRatings
from opsmetrics.models.views import (
    ActionItem,
    AlertImpactAnalysis,
    AlertSummary,
    BenchmarkComparison,
    BenchmarkGap,
    ChannelRanking,
    CostSavingsOpportunity,
    DataCompleteness,
    ExpenseOptimization,
    HourlyDataQuality,
    KPIGap,
    LaborEfficiencyAnalysis,
    PeakSalesInfo,
    PeriodPerformance,
    PlatformComparison,
    PlatformDataQuality,
    PlatformRanking,
    PlatformRecommendations,
    PlatformStanding,
    RankingKeyMetrics,
    ReductionOpportunity,
    TargetGap,
    WasteAnalysis,
)
from opsmetrics.utils.numeric import safe_divide, to_number

logger = structlog.get_logger()

MAX_HIGHLIGHTS = 3
SCORE_FIELD_COUNT = len(PlatformScores.model_fields)

BENCHMARK_STATUS_SCORES = {"above": 100.0, "at": 90.0}
BENCHMARK_DEFAULT_SCORE = 70.0

# Action suggested per off-track KPI whose name contains the marker
PLATFORM_ACTIONS = {
    DeliveryPlatform.DOORDASH: (
        "Rating",
        ActionItem(action="Implement order accuracy checklist", impact="High",
                   effort="Medium", timeline="2-3 weeks"),
    ),
    DeliveryPlatform.UBEREATS: (
        "reviews",
        ActionItem(action="Enhance food packaging and presentation", impact="Medium",
                   effort="Low", timeline="1-2 weeks"),
    ),
    DeliveryPlatform.GRUBHUB: (
        "Rating",
        ActionItem(action="Optimize preparation timing", impact="High",
                   effort="Medium", timeline="3-4 weeks"),
    ),
}

EXPECTED_OUTCOMES = [
    "Improved customer satisfaction ratings",
    "Reduced operational issues",
    "Better delivery performance metrics",
]


# ============================================================================
# Platform views
# ============================================================================


def filter_platforms(
    processed: ProcessedPlatformRatings, platform_filter: PlatformFilter
) -> dict[DeliveryPlatform, PlatformMetrics]:
    """
    Platforms passing the filter, with KPI lists narrowed by its flags.

    off_track_only keeps every KPI that is not on track (not applicable
    included); critical_only keeps KPIs flagged critical.
    """
    filtered = {}
    for platform, metrics in processed.platforms.items():
        if platform_filter.platforms is not None and platform not in platform_filter.platforms:
            continue
        if platform_filter.min_rating is not None and metrics.overall_rating < platform_filter.min_rating:
            continue

        kpis = metrics.kpis
        if platform_filter.off_track_only:
            kpis = [kpi for kpi in kpis if kpi.status != TrackingStatus.ON_TRACK]
        if platform_filter.critical_only:
            kpis = [kpi for kpi in kpis if kpi.is_critical]

        filtered[platform] = metrics.model_copy(update={"kpis": kpis})
    return filtered


def _by_performance(processed: ProcessedPlatformRatings) -> list[PlatformMetrics]:
    # Stable: equal percentages keep platform order
    return sorted(
        processed.platforms.values(),
        key=lambda m: m.performance_percentage,
        reverse=True,
    )


def rank_platforms(processed: ProcessedPlatformRatings) -> list[PlatformRanking]:
    """Platforms ranked by on-track percentage, rank 1 first."""
    return [
        PlatformRanking(
            platform=metrics.platform,
            score=metrics.performance_percentage,
            rank=position,
            level=metrics.performance_level,
            key_metrics=RankingKeyMetrics(
                rating=metrics.overall_rating,
                on_track_percentage=metrics.performance_percentage,
                critical_issues=sum(
                    1 for kpi in metrics.kpis
                    if kpi.is_critical and kpi.status != TrackingStatus.ON_TRACK
                ),
            ),
        )
        for position, metrics in enumerate(_by_performance(processed), start=1)
    ]


def compare_platforms(processed: ProcessedPlatformRatings) -> PlatformComparison:
    """
    Best vs worst platform with strengths, weaknesses and numeric KPI gaps.

    Raises:
        ValueError: If fewer than two platforms are available
    """
    ordered = _by_performance(processed)
    if len(ordered) < 2:
        raise ValueError("Need at least 2 platforms for comparison")

    best, worst = ordered[0], ordered[-1]
    # Platform KPI tables use distinct field names; shared KPIs line up by label
    worst_values = {kpi.label: to_number(kpi.value) for kpi in worst.kpis}

    gaps = []
    for kpi in best.kpis:
        best_value = to_number(kpi.value)
        worst_value = worst_values.get(kpi.label)
        if best_value is None or worst_value is None:
            continue
        gaps.append(KPIGap(
            metric=kpi.label,
            best_value=best_value,
            worst_value=worst_value,
            gap=abs(best_value - worst_value),
        ))

    return PlatformComparison(
        best=PlatformStanding(
            platform=best.platform,
            score=best.performance_percentage,
            highlights=[
                kpi.label for kpi in best.kpis if kpi.status == TrackingStatus.ON_TRACK
            ][:MAX_HIGHLIGHTS],
        ),
        worst=PlatformStanding(
            platform=worst.platform,
            score=worst.performance_percentage,
            highlights=[
                kpi.label for kpi in worst.kpis if kpi.status != TrackingStatus.ON_TRACK
            ][:MAX_HIGHLIGHTS],
        ),
        gaps=gaps,
    )


def recommend_for_platform(
    processed: ProcessedPlatformRatings, platform: DeliveryPlatform
) -> PlatformRecommendations:
    """
    Priority, focus areas and actions for one platform.

    Priority is High with any critical KPI not on track, Medium with more
    than two KPIs not on track, else Low.

    Raises:
        ValueError: If the platform has no processed metrics
    """
    metrics = processed.get(platform)
    if metrics is None:
        raise ValueError(f"No metrics available for platform: {platform.value}")

    lagging = [kpi for kpi in metrics.kpis if kpi.status != TrackingStatus.ON_TRACK]
    if any(kpi.is_critical for kpi in lagging):
        priority = "High"
    elif len(lagging) > 2:
        priority = "Medium"
    else:
        priority = "Low"

    marker, action = PLATFORM_ACTIONS[platform]
    actions = [action for kpi in lagging[:MAX_HIGHLIGHTS] if marker in kpi.name]

    return PlatformRecommendations(
        platform=platform,
        priority=priority,
        focus_areas=[kpi.label for kpi in lagging][:MAX_HIGHLIGHTS],
        actions=actions,
        expected_outcomes=list(EXPECTED_OUTCOMES),
    )


def assess_platform_quality(
    processed: Optional[ProcessedPlatformRatings], alerts: Iterable[Alert] = ()
) -> PlatformDataQuality:
    """
    Share of raw score fields reported and of platforms with applicable KPIs.

    Metric coverage equals completeness; issues are the current alert messages.
    """
    if processed is None:
        return PlatformDataQuality(issues=["No data available"], level="Poor")

    completeness = processed.reported_scores / SCORE_FIELD_COUNT * 100
    active = sum(1 for m in processed.platforms.values() if m.has_applicable_metrics)
    coverage = active / len(DeliveryPlatform) * 100
    overall = (completeness + coverage + completeness) / 3

    return PlatformDataQuality(
        overall_score=overall,
        completeness=completeness,
        metric_coverage=completeness,
        platform_coverage=coverage,
        issues=[alert.message for alert in alerts],
        level=completeness_level(overall),
    )


# ============================================================================
# Alert views
# ============================================================================


def summarize_alerts(alerts: Iterable[Alert]) -> AlertSummary:
    """Counts by severity, platform and category; most alerted platform first wins."""
    alerts = list(alerts)
    by_platform = Counter(a.platform for a in alerts if a.platform is not None)

    most_critical: Optional[DeliveryPlatform] = None
    if by_platform:
        most_critical = by_platform.most_common(1)[0][0]

    return AlertSummary(
        total=len(alerts),
        by_severity=dict(Counter(a.severity for a in alerts)),
        by_platform=dict(by_platform),
        by_category=dict(Counter(a.category for a in alerts if a.category is not None)),
        most_critical_platform=most_critical,
    )


# ============================================================================
# Benchmarks
# ============================================================================


def compare_benchmarks(
    metrics: StoreOperationsMetrics, benchmarks: PerformanceBenchmarks
) -> BenchmarkComparison:
    """Store labor and service against the industry and target profiles."""
    labor = metrics.financial.labor_cost_percentage
    service = metrics.quality.customer_service_score
    industry = benchmarks.industry
    targets = benchmarks.targets

    vs_industry = {
        "Labor Cost": BenchmarkGap(
            current=labor * 100,
            benchmark=industry.labor_cost * 100,
            gap=(labor - industry.labor_cost) * 100,
            status="at" if labor <= industry.labor_cost else "above",
        ),
        "Customer Service": BenchmarkGap(
            current=service * 100,
            benchmark=industry.customer_service * 100,
            gap=(service - industry.customer_service) * 100,
            status="above" if service >= industry.customer_service else "below",
        ),
    }
    vs_targets = {
        "Labor Cost": TargetGap(
            current=labor * 100,
            target=targets.labor_cost * 100,
            gap=(labor - targets.labor_cost) * 100,
            on_track=labor <= targets.labor_cost,
        ),
    }

    overall = sum(
        BENCHMARK_STATUS_SCORES.get(gap.status, BENCHMARK_DEFAULT_SCORE)
        for gap in vs_industry.values()
    ) / len(vs_industry)

    return BenchmarkComparison(vs_industry=vs_industry, vs_targets=vs_targets, overall_score=overall)


# ============================================================================
# Store operations views
# ============================================================================

# Average order value worth one percentage point of channel share
CHANNEL_VALUE_DIVISOR = 50.0
STRONG_CHANNEL_SHARE = 20.0
WEAK_CHANNEL_SHARE = 10.0

METRIC_GROUPS = ["financial", "operational", "quality", "cost_control", "sales_channel"]

# Estimated split of recorded waste
WASTE_MIX = {"Food Waste": 0.7, "Packaging": 0.2, "Other": 0.1}
WASTE_CAUSES = ["Overproduction", "Quality issues", "Portion inconsistency"]
WASTE_REDUCTIONS = [
    ReductionOpportunity(category="Food Waste", potential=30.0, effort="Medium"),
    ReductionOpportunity(category="Packaging", potential=15.0, effort="Low"),
]

TARGET_LABOR_EFFICIENCY = 85.0
SHIFT_HOURS = 8

LABOR_SAVINGS_BELOW_EFFICIENCY = 80.0
LABOR_SAVINGS_SHARE_OF_SALES = 0.05
WASTE_SAVINGS_ABOVE_PERCENTAGE = 0.03
WASTE_SAVINGS_SHARE = 0.3

ESTIMATED_RESOLUTION_HOURS = 24.0


def completeness_level(score: float) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    return "Poor"


def rank_channels(channels: SalesChannelMetrics) -> list[ChannelRanking]:
    """Sales channels ordered by share plus order value, rank 1 first."""
    scored = [
        (channel.percentage + channel.average_order_value / CHANNEL_VALUE_DIVISOR, channel)
        for channel in channels.channels
    ]
    # Stable: equal scores keep bucket order
    scored.sort(key=lambda pair: pair[0], reverse=True)

    return [
        ChannelRanking(
            channel=channel.channel,
            rank=position,
            score=score,
            revenue=channel.sales,
            efficiency=channel.average_order_value,
            strengths=["Strong market share"] if channel.percentage > STRONG_CHANNEL_SHARE else [],
            opportunities=["Growth potential"] if channel.percentage < WEAK_CHANNEL_SHARE else [],
        )
        for position, (score, channel) in enumerate(scored, start=1)
    ]


def assess_data_completeness(metrics: Optional[StoreOperationsMetrics]) -> DataCompleteness:
    """Metric groups present in the store-operations result."""
    available = 100.0 if metrics is not None else 0.0
    by_category = {group: available for group in METRIC_GROUPS}
    overall = sum(by_category.values()) / len(by_category)
    missing = [group for group, score in by_category.items() if score == 0]

    return DataCompleteness(
        overall=overall,
        by_category=by_category,
        missing_fields=missing,
        quality=completeness_level(overall),
        recommendations=[f"Ensure {group} data is properly captured" for group in missing],
    )


def analyze_waste(operations: ProcessedStoreOperations) -> WasteAnalysis:
    """Daily waste, its estimated mix, and the weekly waste trend when known."""
    cost_control = operations.daily.cost_control
    trend = TrendDirection.STABLE
    if operations.weekly is not None:
        trend = operations.weekly.trends.waste_trend.direction

    return WasteAnalysis(
        total_waste=cost_control.total_waste,
        waste_percentage=cost_control.waste_percentage * 100,
        waste_by_category={
            category: cost_control.total_waste * share for category, share in WASTE_MIX.items()
        },
        trend=trend,
        causes=list(WASTE_CAUSES),
        reduction_opportunities=list(WASTE_REDUCTIONS),
    )


def analyze_labor_efficiency(metrics: StoreOperationsMetrics) -> LaborEfficiencyAnalysis:
    """Labor efficiency against the 85 target; cost per hour assumes one shift."""
    efficiency = metrics.cost_control.labor_efficiency
    financial = metrics.financial
    return LaborEfficiencyAnalysis(
        current_efficiency=efficiency,
        target_efficiency=TARGET_LABOR_EFFICIENCY,
        gap=TARGET_LABOR_EFFICIENCY - efficiency,
        cost_per_hour=financial.total_sales * financial.labor_cost_percentage / SHIFT_HOURS,
        productivity_score=efficiency,
        optimization_areas=["Schedule optimization", "Cross-training", "Process automation"],
        recommendations=["Implement flexible scheduling", "Provide efficiency training"],
    )


def find_cost_savings(metrics: StoreOperationsMetrics) -> list[CostSavingsOpportunity]:
    """
    Estimated savings.

    Labor: efficiency above 0 and below 80 saves 5% of sales. Waste: more
    than 3% of sales saves 30% of the waste.
    """
    cost_control = metrics.cost_control
    opportunities = []

    if 0 < cost_control.labor_efficiency < LABOR_SAVINGS_BELOW_EFFICIENCY:
        opportunities.append(CostSavingsOpportunity(
            category=AlertCategory.COST_CONTROL,
            description="Optimize labor scheduling and efficiency",
            potential=metrics.financial.total_sales * LABOR_SAVINGS_SHARE_OF_SALES,
            effort="Medium",
            timeline="2-3 months",
            impact="High",
            requirements=["Schedule analysis", "Staff training"],
        ))

    if cost_control.waste_percentage > WASTE_SAVINGS_ABOVE_PERCENTAGE:
        opportunities.append(CostSavingsOpportunity(
            category=AlertCategory.COST_CONTROL,
            description="Reduce food waste through better inventory management",
            potential=cost_control.total_waste * WASTE_SAVINGS_SHARE,
            effort="Low",
            timeline="1 month",
            impact="Medium",
            requirements=["Inventory tracking system", "Staff training"],
        ))

    return opportunities


def optimize_expenses(metrics: StoreOperationsMetrics) -> ExpenseOptimization:
    """Roll-up of find_cost_savings: totals, quick wins and ROI against sales."""
    opportunities = find_cost_savings(metrics)
    total = sum(o.potential for o in opportunities)

    by_category: dict[AlertCategory, float] = {}
    for opportunity in opportunities:
        by_category[opportunity.category] = by_category.get(opportunity.category, 0.0) + opportunity.potential

    roi = 0.0
    if total > 0:
        roi = total / (metrics.financial.total_sales or 1) * 100

    return ExpenseOptimization(
        total_savings=total,
        by_category=by_category,
        quick_wins=[o.description for o in opportunities if o.effort == "Low"],
        long_term_initiatives=[o.description for o in opportunities if o.effort == "High"],
        roi=roi,
        opportunities=opportunities,
    )


def analyze_alert_impact(alerts: Iterable[Alert]) -> AlertImpactAnalysis:
    """Summed |variance| per category; alerts without a category add nothing."""
    alerts = list(alerts)
    by_category: dict[AlertCategory, float] = {}
    for alert in alerts:
        if alert.category is None:
            continue
        by_category[alert.category] = by_category.get(alert.category, 0.0) + abs(alert.variance)

    return AlertImpactAnalysis(
        total_impact=sum(by_category.values()),
        by_category=by_category,
        urgent_count=sum(1 for a in alerts if a.priority == AlertPriority.URGENT),
        average_resolution_time=ESTIMATED_RESOLUTION_HOURS,
        resource_requirements=["Management attention", "Staff time", "Process changes"],
    )


# ============================================================================
# Hourly views
# ============================================================================

HOURLY_SORT_KEYS = {
    HourlySort.HOUR_ASC: (lambda h: h.hour, False),
    HourlySort.HOUR_DESC: (lambda h: h.hour, True),
    HourlySort.SALES_ASC: (lambda h: h.total_sales, False),
    HourlySort.SALES_DESC: (lambda h: h.total_sales, True),
    HourlySort.ORDERS_ASC: (lambda h: h.order_count, False),
    HourlySort.ORDERS_DESC: (lambda h: h.order_count, True),
}


def filter_hours(
    processed: ProcessedHourlySales,
    hourly_filter: Optional[HourlyFilter] = None,
    config: Optional[HourlyAnalysisConfig] = None,
) -> list[ProcessedHour]:
    """
    Hours passing the configured base rules and the caller's filter, sorted.

    Base rules: configured excluded hours are dropped, and unless
    include_zero_hours is set, so are hours selling less than
    minimum_sales_threshold.
    """
    hourly_filter = hourly_filter or HourlyFilter()
    config = config or HourlyAnalysisConfig()
    excluded = set(config.excluded_hours) | set(hourly_filter.exclude_hours or [])
    included = set(hourly_filter.include_hours) if hourly_filter.include_hours is not None else None

    def keep(hour: ProcessedHour) -> bool:
        if hour.hour in excluded:
            return False
        if included is not None and hour.hour not in included:
            return False
        if not config.include_zero_hours and hour.total_sales < config.minimum_sales_threshold:
            return False
        if hourly_filter.active_only and not hour.has_activity:
            return False
        if hourly_filter.min_sales is not None and hour.total_sales < hourly_filter.min_sales:
            return False
        if hourly_filter.max_sales is not None and hour.total_sales > hourly_filter.max_sales:
            return False
        if hourly_filter.min_orders is not None and hour.order_count < hourly_filter.min_orders:
            return False
        if hourly_filter.max_orders is not None and hour.order_count > hourly_filter.max_orders:
            return False
        return True

    key, reverse = HOURLY_SORT_KEYS[hourly_filter.sort]
    return sorted((h for h in processed.hours if keep(h)), key=key, reverse=reverse)


# Neighbour-relative deviation above which an hour counts as an anomaly
ANOMALY_RATIO = 3.0


def format_hour(hour: int) -> str:
    """Clock label for an hour index: 0 -> "12:00 AM", 13 -> "1:00 PM"."""
    suffix = "PM" if hour >= 12 else "AM"
    display = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display}:00 {suffix}"


def peak_sales_info(processed: ProcessedHourlySales) -> PeakSalesInfo:
    """The peak hour with its orders and share of the day."""
    summary = processed.summary
    peak = next(h for h in processed.hours if h.hour == summary.peak_sales_hour)
    return PeakSalesInfo(
        peak_hour=summary.peak_sales_hour,
        peak_amount=summary.peak_sales_amount,
        peak_orders=peak.order_count,
        time_description=format_hour(summary.peak_sales_hour),
        percentage_of_daily=safe_divide(summary.peak_sales_amount, summary.total_daily_sales) * 100,
    )


def period_performance(
    processed: ProcessedHourlySales, start_hour: int, end_hour: int
) -> PeriodPerformance:
    """
    Sales over an inclusive hour range.

    Raises:
        ValueError: If the range is not within 0-23 or starts after it ends
    """
    if not 0 <= start_hour <= end_hour <= 23:
        raise ValueError(f"Invalid hour range: {start_hour}-{end_hour}")

    hours = [h for h in processed.hours if start_hour <= h.hour <= end_hour]
    hour_count = end_hour - start_hour + 1
    total_sales = sum(h.total_sales for h in hours)
    total_orders = sum(h.order_count for h in hours)

    # First hour wins ties
    best = max(hours, key=lambda h: h.total_sales) if hours else None

    daily_average = processed.summary.total_daily_sales / HOURS_PER_DAY
    per_hour = total_sales / hour_count
    vs_daily = 0.0
    if daily_average > 0:
        vs_daily = (per_hour - daily_average) / daily_average * 100

    return PeriodPerformance(
        start_hour=start_hour,
        end_hour=end_hour,
        total_sales=total_sales,
        total_orders=total_orders,
        average_order_value=safe_divide(total_sales, total_orders),
        sales_per_hour=per_hour,
        active_hours=sum(1 for h in hours if h.has_activity),
        best_hour=best.hour if best is not None else start_hour,
        vs_daily=vs_daily,
    )


def hourly_quality_level(score: float) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    if score >= 40:
        return "Poor"
    return "Critical"


def assess_hourly_quality(processed: Optional[ProcessedHourlySales]) -> HourlyDataQuality:
    """Completeness, consistency and neighbour anomalies of the hourly record."""
    if processed is None:
        return HourlyDataQuality(issues=["No data available"], level="Critical")

    validation = processed.validation
    active = np.array([h.total_sales for h in processed.hours if h.has_activity], dtype=float)

    consistency = 0.0
    if active.size and active.mean() > 0:
        consistency = max(0.0, 100.0 - float(active.std() / active.mean() * 100))

    sales = np.array([h.total_sales for h in processed.hours], dtype=float)
    anomalies = 0
    if sales.size > 2:
        neighbours = (sales[:-2] + sales[2:]) / 2
        current = sales[1:-1]
        with np.errstate(divide="ignore", invalid="ignore"):
            deviation = np.abs(current - neighbours) / neighbours
        anomalies = int(np.sum((neighbours > 0) & (deviation > ANOMALY_RATIO)))

    overall = (validation.completeness + consistency) / 2
    return HourlyDataQuality(
        overall_score=overall,
        completeness=validation.completeness,
        consistency=consistency,
        anomalies=anomalies,
        issues=[*validation.errors, *validation.warnings],
        level=hourly_quality_level(overall),
    )
