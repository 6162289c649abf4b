"""
Store-Operations Processor: financial, operational, channel, quality and
cost-control metrics, the composite grade, and threshold alert candidates.

The daily record drives the alert rules. A weekly record, when present, is
processed with the same formulas (no alerts) and carries day-over-week trends
plus a sales projection.

Channel buckets overlap upstream (``Phone`` feeds both the traditional and
the phone bucket), so channel percentages are shares of the bucket total
rather than of Total_Sales; the four percentages always partition 100.

Version: store_operations_v1
"""

from typing import Optional

import structlog

from opsmetrics.engine.grading import GradingEngine
from opsmetrics.engine.trends import TrendEngine
from opsmetrics.models.alerts import AlertCandidate
from opsmetrics.models.analysis_config import OperationsAnalysisConfig
from opsmetrics.models.enums import AlertCategory, AnalysisDomain, SalesChannelType
from opsmetrics.models.envelope import StoreOperationsRaw
from opsmetrics.models.operations import (
    ChannelPerformance,
    CostControlMetrics,
    FinancialMetrics,
    OperationalMetrics,
    ProcessedStoreOperations,
    QualityMetrics,
    SalesChannelMetrics,
    StoreOperationsMetrics,
    WeeklyOperationsMetrics,
)
from opsmetrics.utils.numeric import safe_divide

logger = structlog.get_logger()


# ============================================================================
# Constants
# ============================================================================

# Efficiency score weights (ratio inputs, so a perfect day scores 100)
EFFICIENCY_WEIGHTS = {
    "Put_into_Portal_Percent": 30,
    "In_Portal_on_Time_Percent": 30,
    "Customer_Service": 25,
    "Customer_count_percent": 15,
}

# Share of Customer_count assumed to order through each bucket
CHANNEL_ORDER_SHARES = {
    SalesChannelType.TRADITIONAL: 0.30,
    SalesChannelType.DIGITAL: 0.40,
    SalesChannelType.DELIVERY: 0.25,
    SalesChannelType.PHONE: 0.05,
}

# Raw fields summed into each bucket
CHANNEL_SOURCES = {
    SalesChannelType.TRADITIONAL: ("Total_Cash_Sales", "Phone"),
    SalesChannelType.DIGITAL: ("Website", "Mobile"),
    SalesChannelType.DELIVERY: ("DoorDash_Sales", "UberEats_Sales", "GrubHub_Sales"),
    SalesChannelType.PHONE: ("Phone", "Call_Center_Agent"),
}

LABOR_RECOMMENDATIONS = [
    "Review staffing schedules for optimization",
    "Analyze peak hour coverage",
    "Consider cross-training staff for flexibility",
]
WASTE_RECOMMENDATIONS = [
    "Review inventory management procedures",
    "Check food preparation processes",
    "Analyze waste tracking accuracy",
]
SERVICE_RECOMMENDATIONS = [
    "Review customer feedback for improvement areas",
    "Provide additional staff training",
    "Monitor service delivery processes",
]
CASH_RECOMMENDATIONS = [
    "Review cash handling procedures",
    "Check register reconciliation process",
    "Audit cash management controls",
]


def total_waste(record: StoreOperationsRaw) -> float:
    return record.waste_gateway + record.Waste_Alta


def waste_percentage(record: StoreOperationsRaw) -> float:
    """Waste as a fraction of sales, 0 when there were no sales."""
    return safe_divide(total_waste(record), record.Total_Sales)


class StoreOperationsProcessor:
    """
    Processes daily (and optionally weekly) store-operations records.

    Example:
        >>> processor = StoreOperationsProcessor(OperationsAnalysisConfig())
        >>> processed, candidates = processor.process(daily, weekly)
        >>> processed.daily.overall_grade
        <OperationalGrade.MEETS_EXPECTATIONS: 'Meets Expectations'>
    """

    def __init__(self, config: OperationsAnalysisConfig, trend_engine: Optional[TrendEngine] = None):
        """
        Args:
            config: Targets, alert settings, grade weights and cost thresholds
            trend_engine: Engine for weekly trends and projection
        """
        self.config = config
        self.grading = GradingEngine(config.grade_weights)
        self.trends = trend_engine or TrendEngine()
        self.logger = structlog.get_logger()

    def process(
        self,
        daily: StoreOperationsRaw,
        weekly: Optional[StoreOperationsRaw] = None,
    ) -> tuple[ProcessedStoreOperations, list[AlertCandidate]]:
        """
        Process the daily record and, when given, the weekly aggregate.

        Args:
            daily: Daily store-operations record
            weekly: Weekly aggregate of the same shape

        Returns:
            (processed tree, alert candidates from the daily record)
        """
        daily_metrics = self.compute_metrics(daily)

        weekly_metrics = None
        projection = None
        if weekly is not None:
            weekly_metrics = WeeklyOperationsMetrics(
                **dict(self.compute_metrics(weekly)),
                trends=self.trends.analyze(daily, weekly),
            )
            projection = self.trends.project_sales(daily, weekly)

        candidates = self.evaluate_thresholds(daily)

        self.logger.info(
            "store_operations_processed",
            overall_grade=daily_metrics.overall_grade.value,
            composite_score=round(daily_metrics.composite_score, 3),
            has_weekly=weekly is not None,
            candidates=len(candidates),
        )

        processed = ProcessedStoreOperations(
            daily=daily_metrics,
            weekly=weekly_metrics,
            projection=projection,
        )
        return processed, candidates

    # =========================================================================
    # Metrics
    # =========================================================================

    def compute_metrics(self, record: StoreOperationsRaw) -> StoreOperationsMetrics:
        """Five sub-trees plus the composite grade for one record."""
        financial = self._financial(record)
        operational = self._operational(record)
        quality = self._quality(record, operational)
        cost_control = self._cost_control(record)

        composite = self.grading.composite_score(
            financial.performance_grade,
            operational.efficiency_score,
            quality.quality_grade,
            cost_control.cost_control_grade,
        )

        return StoreOperationsMetrics(
            financial=financial,
            operational=operational,
            sales_channels=self._sales_channels(record),
            quality=quality,
            cost_control=cost_control,
            overall_grade=self.grading.composite_to_grade(composite),
            composite_score=composite,
        )

    def _financial(self, record: StoreOperationsRaw) -> FinancialMetrics:
        return FinancialMetrics(
            total_sales=record.Total_Sales,
            cash_sales=record.Total_Cash_Sales,
            digital_sales=record.Total_Sales * record.Digital_Sales_Percent,
            average_ticket=record.Avrage_ticket,
            tips=record.Total_TIPS,
            cash_variance=record.over_short,
            labor_cost_percentage=record.labor,
            revenue_per_customer=safe_divide(record.Total_Sales, record.Customer_count),
            performance_grade=GradingEngine.financial_grade(
                record.labor, self.config.targets.labor_cost_target
            ),
        )

    def _operational(self, record: StoreOperationsRaw) -> OperationalMetrics:
        # Not clamped: ratio inputs above 1 push the score past 100
        efficiency = sum(
            getattr(record, field) * weight for field, weight in EFFICIENCY_WEIGHTS.items()
        )
        return OperationalMetrics(
            customer_count=record.Customer_count,
            customer_count_percentage=record.Customer_count_percent,
            portal_utilization=record.Put_into_Portal_Percent,
            portal_on_time_percentage=record.In_Portal_on_Time_Percent,
            modification_rate=safe_divide(record.Modified_Order_Qty, record.Customer_count),
            refund_rate=safe_divide(record.Refunded_order_Qty, record.Customer_count),
            efficiency_score=efficiency,
        )

    def _sales_channels(self, record: StoreOperationsRaw) -> SalesChannelMetrics:
        bucket_sales = {
            channel: max(0.0, sum(getattr(record, field) for field in fields))
            for channel, fields in CHANNEL_SOURCES.items()
        }
        bucket_total = sum(bucket_sales.values())
        has_sales = record.Total_Sales > 0 and bucket_total > 0

        channels = {}
        for channel, sales in bucket_sales.items():
            estimated_orders = record.Customer_count * CHANNEL_ORDER_SHARES[channel]
            channels[channel] = ChannelPerformance(
                channel=channel,
                sales=sales,
                percentage=sales / bucket_total * 100 if has_sales else 0.0,
                orders=round(estimated_orders),
                average_order_value=safe_divide(sales, estimated_orders),
            )

        # First channel with the maximum wins ties
        top_channel = SalesChannelType.TRADITIONAL
        for channel, sales in bucket_sales.items():
            if sales > bucket_sales[top_channel]:
                top_channel = channel

        return SalesChannelMetrics(
            traditional=channels[SalesChannelType.TRADITIONAL],
            digital=channels[SalesChannelType.DIGITAL],
            delivery=channels[SalesChannelType.DELIVERY],
            phone=channels[SalesChannelType.PHONE],
            top_channel=top_channel,
            digital_adoption_rate=record.Digital_Sales_Percent,
        )

    def _quality(
        self, record: StoreOperationsRaw, operational: OperationalMetrics
    ) -> QualityMetrics:
        accuracy = max(0.0, 1 - operational.modification_rate - operational.refund_rate)
        return QualityMetrics(
            customer_service_score=record.Customer_Service,
            order_accuracy=accuracy,
            service_consistency=record.In_Portal_on_Time_Percent,
            quality_grade=GradingEngine.quality_grade(record.Customer_Service),
        )

    def _cost_control(self, record: StoreOperationsRaw) -> CostControlMetrics:
        targets = self.config.targets
        labor_efficiency = 0.0
        if record.labor != 0:
            labor_efficiency = max(0.0, targets.labor_cost_target / record.labor * 100)

        return CostControlMetrics(
            total_waste=total_waste(record),
            waste_percentage=waste_percentage(record),
            labor_efficiency=labor_efficiency,
            cost_control_grade=GradingEngine.cost_control_grade(
                record.labor,
                targets.labor_cost_target,
                waste_percentage(record),
                targets.waste_percentage_target,
                record.over_short,
                self.config.cost_thresholds.cash_variance_range,
            ),
        )

    # =========================================================================
    # Threshold rules
    # =========================================================================

    def evaluate_thresholds(self, record: StoreOperationsRaw) -> list[AlertCandidate]:
        """
        Alert candidates for the daily record's threshold breaches.

        A breach whose deviation from a non-zero target is below
        min_variance_threshold is not raised.
        """
        settings = self.config.alert_settings
        if not settings.enable_alerts:
            return []

        targets = self.config.targets
        limits = self.config.cost_thresholds
        candidates: list[AlertCandidate] = []

        if record.labor > limits.max_labor_cost:
            candidates.append(self._candidate(
                AlertCategory.COST_CONTROL,
                "Labor Cost Exceeded",
                "labor_cost",
                f"Labor cost is {record.labor * 100:.1f}%, above target of "
                f"{targets.labor_cost_target * 100:.1f}%",
                record.labor,
                targets.labor_cost_target,
                LABOR_RECOMMENDATIONS,
            ))

        waste = waste_percentage(record)
        if waste > limits.max_waste_percentage:
            candidates.append(self._candidate(
                AlertCategory.COST_CONTROL,
                "Waste Percentage High",
                "waste_percentage",
                f"Waste is {waste * 100:.2f}% of sales, above target of "
                f"{targets.waste_percentage_target * 100:.2f}%",
                waste,
                targets.waste_percentage_target,
                WASTE_RECOMMENDATIONS,
            ))

        if record.Customer_Service < targets.customer_service_target:
            candidates.append(self._candidate(
                AlertCategory.QUALITY,
                "Customer Service Below Target",
                "customer_service",
                f"Customer service score is {record.Customer_Service * 100:.1f}%, "
                f"below target of {targets.customer_service_target * 100:.1f}%",
                record.Customer_Service,
                targets.customer_service_target,
                SERVICE_RECOMMENDATIONS,
            ))

        cash_variance = abs(record.over_short)
        if cash_variance > limits.cash_variance_range.limit:
            candidates.append(self._candidate(
                AlertCategory.FINANCIAL,
                "Cash Variance Issue",
                "cash_variance",
                f"Cash variance is ${cash_variance:.2f}, outside acceptable range",
                record.over_short,
                0.0,
                CASH_RECOMMENDATIONS,
            ))

        kept = [c for c in candidates if self._exceeds_min_variance(c)]
        if len(kept) < len(candidates):
            self.logger.debug(
                "operational_alerts_below_min_variance",
                suppressed=len(candidates) - len(kept),
                min_variance_threshold=settings.min_variance_threshold,
            )
        return kept

    def _exceeds_min_variance(self, candidate: AlertCandidate) -> bool:
        target = candidate.target_value
        if not target:
            return True
        deviation = abs(candidate.current_value - target) / abs(target)
        return deviation >= self.config.alert_settings.min_variance_threshold

    @staticmethod
    def _candidate(
        category: AlertCategory,
        title: str,
        metric: str,
        message: str,
        current: float,
        target: float,
        recommendations: list[str],
    ) -> AlertCandidate:
        return AlertCandidate(
            domain=AnalysisDomain.STORE_OPERATIONS,
            category=category,
            title=title,
            metric=metric,
            message=message,
            current_value=current,
            target_value=target,
            recommendations=list(recommendations),
        )
