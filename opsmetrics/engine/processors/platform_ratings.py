"""
Platform-Ratings Processor: delivery platform KPIs, performance levels and
off-track alert candidates.

Each platform has a fixed KPI table. A KPI's status comes from its parallel
``*_NAOT_*`` tracking field; review response rates are not tracked upstream
and always read as on track. A KPI with no tracking value is not applicable.

    performance_percentage = on_track / applicable * 100   (0 if none applicable)

Version: platform_ratings_v1
"""

from typing import Optional

import structlog

from opsmetrics.engine.grading import GradingEngine
from opsmetrics.models.alerts import AlertCandidate
from opsmetrics.models.analysis_config import PlatformAnalysisConfig
from opsmetrics.models.enums import (
    AnalysisDomain,
    DeliveryPlatform,
    MetricUnit,
    TrackingStatus,
)
from opsmetrics.models.envelope import PlatformRatingsRaw
from opsmetrics.models.platform import (
    KPI,
    PlatformMetrics,
    PlatformSummary,
    ProcessedPlatformRatings,
)
from opsmetrics.utils.numeric import safe_divide, to_number

logger = structlog.get_logger()


# ============================================================================
# KPI tables
# ============================================================================

# (score field, label, unit, target, tracking field); None tracking = always on track
PLATFORM_KPIS: dict[DeliveryPlatform, list[tuple]] = {
    DeliveryPlatform.DOORDASH: [
        ("DD_Ratings_Average_Rating", "Average Rating", MetricUnit.RATING, 4.5,
         "DD_NAOT_Ratings_Average_Rating"),
        ("DD_Cancellations_Sales_Lost", "Sales Lost to Cancellations", MetricUnit.CURRENCY, None,
         "DD_NAOT_Cancellations_Sales_Lost"),
        ("DD_Missing_or_Incorrect_Error_Charges", "Error Charges", MetricUnit.CURRENCY, None,
         "DD_NAOT_Missing_or_Incorrect_Error_Charges"),
        ("DD_Avoidable_Wait_M_Sec", "Avoidable Wait Time", MetricUnit.MINUTES, 2.0,
         "DD_NAOT_Avoidable_Wait_M_Sec"),
        ("DD_Reviews_Responded", "Review Response Rate", MetricUnit.PERCENTAGE, 1.0, None),
    ],
    DeliveryPlatform.UBEREATS: [
        ("UE_Customer_reviews_overview", "Customer Reviews", MetricUnit.RATING, 4.0,
         "UE_NAOT_Customer_reviews_overview"),
        ("UE_Cost_of_Refunds", "Cost of Refunds", MetricUnit.CURRENCY, None,
         "UE_NAOT_Cost_of_Refunds"),
        ("UE_Unfulfilled_order_rate", "Unfulfilled Order Rate", MetricUnit.PERCENTAGE, 0.05,
         "UE_NAOT_Unfulfilled_order_rate"),
        ("UE_Time_unavailable_during_open_hours_hh_mm", "Unavailable Time", MetricUnit.HOURS, 0.0,
         "UE_NAOT_Time_unavailable_during_open_hours_hh_mm"),
        ("UE_Reviews_Responded", "Review Response Rate", MetricUnit.PERCENTAGE, 1.0, None),
    ],
    DeliveryPlatform.GRUBHUB: [
        ("GH_Rating", "Overall Rating", MetricUnit.RATING, 4.0, "GH_NAOT_Rating"),
        ("GH_Food_was_good", "Food Quality Rating", MetricUnit.RATIO, 0.8,
         "GH_NAOT_Food_was_good"),
        ("GH_Delivery_was_on_time", "On-Time Delivery Rating", MetricUnit.RATIO, 0.9,
         "GH_NAOT_Delivery_was_on_time"),
        ("GH_Order_was_accurate", "Order Accuracy Rating", MetricUnit.RATIO, 0.85,
         "GH_NAOT_Order_was_accurate"),
    ],
}

# Headline rating field per platform
RATING_FIELDS = {
    DeliveryPlatform.DOORDASH: "DD_Ratings_Average_Rating",
    DeliveryPlatform.UBEREATS: "UE_Customer_reviews_overview",
    DeliveryPlatform.GRUBHUB: "GH_Rating",
}

PLATFORM_RECOMMENDATIONS = {
    "DD_Ratings_Average_Rating": [
        "Focus on order accuracy and delivery speed",
        "Review recent customer feedback for improvement areas",
    ],
    "UE_Customer_reviews_overview": [
        "Improve food quality and packaging",
        "Reduce preparation time to maintain food temperature",
    ],
    "GH_Rating": [
        "Enhance overall service quality",
        "Monitor order fulfillment process",
    ],
}

DEFAULT_RECOMMENDATIONS = [
    "Review operational procedures",
    "Monitor metric closely for improvement",
]


def reported_score_count(raw: PlatformRatingsRaw) -> int:
    """Score fields the upstream report actually filled in."""
    values = raw.score.model_dump().values()
    return sum(1 for value in values if value is not None and value != 0)


class PlatformRatingsProcessor:
    """
    Turns the daily platform-quality record into per-platform metrics.

    Example:
        >>> processor = PlatformRatingsProcessor(PlatformAnalysisConfig())
        >>> processed, candidates = processor.process(raw)
        >>> processed.summary.performance_grade
        <PerformanceGrade.B: 'B'>
    """

    def __init__(self, config: PlatformAnalysisConfig):
        """
        Args:
            config: Platform thresholds, critical metrics and alert settings
        """
        self.config = config
        self.logger = structlog.get_logger()

    def process(
        self, raw: PlatformRatingsRaw
    ) -> tuple[ProcessedPlatformRatings, list[AlertCandidate]]:
        """
        Process all three platforms.

        Args:
            raw: Daily platform-ratings record

        Returns:
            (processed tree, alert candidates in generation order). Candidates
            are empty when alerts are disabled.
        """
        platforms = {
            platform: self._process_platform(platform, raw)
            for platform in PLATFORM_KPIS
        }
        summary = self.summarize(list(platforms.values()))

        candidates: list[AlertCandidate] = []
        if self.config.alert_settings.enable_alerts:
            for metrics in platforms.values():
                candidates.extend(self._candidates_for(metrics))

        self.logger.info(
            "platform_ratings_processed",
            overall_performance=round(summary.overall_performance, 2),
            grade=summary.performance_grade.value,
            candidates=len(candidates),
        )

        processed = ProcessedPlatformRatings(
            platforms=platforms,
            summary=summary,
            reported_scores=reported_score_count(raw),
        )
        return processed, candidates

    # =========================================================================
    # Per-platform
    # =========================================================================

    def _process_platform(
        self, platform: DeliveryPlatform, raw: PlatformRatingsRaw
    ) -> PlatformMetrics:
        kpis = [
            self._build_kpi(name, label, unit, target, tracking_field, raw)
            for name, label, unit, target, tracking_field in PLATFORM_KPIS[platform]
        ]

        on_track = sum(1 for kpi in kpis if kpi.status == TrackingStatus.ON_TRACK)
        applicable = sum(1 for kpi in kpis if kpi.status != TrackingStatus.NOT_APPLICABLE)
        percentage = safe_divide(on_track, applicable) * 100

        overall_rating = to_number(getattr(raw.score, RATING_FIELDS[platform])) or 0.0

        return PlatformMetrics(
            platform=platform,
            overall_rating=overall_rating,
            kpis=kpis,
            on_track_count=on_track,
            total_applicable_metrics=applicable,
            performance_percentage=percentage,
            performance_level=GradingEngine.performance_level(
                percentage, self.config.performance_thresholds
            ),
        )

    def _build_kpi(
        self,
        name: str,
        label: str,
        unit: MetricUnit,
        target: Optional[float],
        tracking_field: Optional[str],
        raw: PlatformRatingsRaw,
    ) -> KPI:
        if tracking_field is None:
            status = TrackingStatus.ON_TRACK
        else:
            status = getattr(raw.is_on_track, tracking_field) or TrackingStatus.NOT_APPLICABLE

        return KPI(
            name=name,
            label=label,
            value=getattr(raw.score, name),
            status=status,
            unit=unit,
            is_critical=name in self.config.critical_metrics,
            target=target,
        )

    def _candidates_for(self, metrics: PlatformMetrics) -> list[AlertCandidate]:
        return [
            AlertCandidate(
                domain=AnalysisDomain.PLATFORM_RATINGS,
                platform=metrics.platform,
                metric=kpi.name,
                title=f"{metrics.platform.value} {kpi.label}",
                message=f"{metrics.platform.value} {kpi.label} is not meeting targets",
                current_value=kpi.value,
                target_value=kpi.target,
                recommendations=list(
                    PLATFORM_RECOMMENDATIONS.get(kpi.name, DEFAULT_RECOMMENDATIONS)
                ),
                is_critical=kpi.is_critical,
            )
            for kpi in metrics.off_track_kpis
        ]

    # =========================================================================
    # Summary
    # =========================================================================

    @staticmethod
    def summarize(platforms: list[PlatformMetrics]) -> PlatformSummary:
        """
        Cross-platform summary over platforms with at least one applicable KPI.

        Best and attention platforms take the first strict maximum / minimum
        performance in platform order.
        """
        valid = [p for p in platforms if p.has_applicable_metrics]
        if not valid:
            return PlatformSummary()

        total_on_track = sum(p.on_track_count for p in valid)
        total_applicable = sum(p.total_applicable_metrics for p in valid)
        overall = safe_divide(total_on_track, total_applicable) * 100

        best = valid[0]
        worst = valid[0]
        for metrics in valid[1:]:
            if metrics.performance_percentage > best.performance_percentage:
                best = metrics
            if metrics.performance_percentage < worst.performance_percentage:
                worst = metrics

        return PlatformSummary(
            average_rating=sum(p.overall_rating for p in valid) / len(valid),
            total_on_track=total_on_track,
            total_applicable=total_applicable,
            overall_performance=overall,
            best_platform=best.platform,
            attention_required=worst.platform,
            performance_grade=GradingEngine.performance_grade(overall),
        )
