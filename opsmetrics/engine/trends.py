"""
Trend Engine: day-over-week variance and a linear sales projection.

Weekly flow metrics (sales, customers, waste) are divided by 7 to get a
daily-equivalent baseline; ratio metrics (labor, digital share) are compared
verbatim. Each comparison yields a percentage change, a five-tier direction
and a five-tier significance.

The projection fits a line through the weekly daily-equivalent sales
(period 0) and today's sales (period 1) with scipy.stats.linregress and
extrapolates forward. Projected sales never go below 0.

Version: trends_v1
"""

from typing import Optional

import structlog
from scipy import stats

from opsmetrics.models.envelope import StoreOperationsRaw
from opsmetrics.models.enums import TrendDirection, TrendSignificance
from opsmetrics.models.operations import SalesProjection, TrendAnalysis, WeeklyTrends

logger = structlog.get_logger()

DAYS_PER_WEEK = 7
DEFAULT_PROJECTION_HORIZON = 12

# (minimum |percentage change|, significance)
SIGNIFICANCE_CUTS = [
    (20.0, TrendSignificance.HIGHLY_SIGNIFICANT),
    (10.0, TrendSignificance.SIGNIFICANT),
    (5.0, TrendSignificance.MODERATE),
    (2.0, TrendSignificance.MINOR),
]


def percentage_change(current: float, previous: float) -> float:
    """
    Signed change from previous to current in percent.

    Returns 0.0 when previous is 0 (no baseline to compare against).
    """
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def trend_direction(change: float) -> TrendDirection:
    if change >= 10.0:
        return TrendDirection.STRONG_UP
    if change >= 2.0:
        return TrendDirection.UP
    if change <= -10.0:
        return TrendDirection.STRONG_DOWN
    if change <= -2.0:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def trend_significance(change: float) -> TrendSignificance:
    magnitude = abs(change)
    for cut, significance in SIGNIFICANCE_CUTS:
        if magnitude >= cut:
            return significance
    return TrendSignificance.NEGLIGIBLE


class TrendEngine:
    """
    Compares a daily store-operations record against its weekly aggregate.

    Example:
        >>> engine = TrendEngine()
        >>> trends = engine.analyze(daily_raw, weekly_raw)
        >>> trends.sales_trend.direction
        <TrendDirection.UP: 'up'>
    """

    def __init__(self, horizon: int = DEFAULT_PROJECTION_HORIZON):
        """
        Args:
            horizon: Number of periods ahead for the longer projection
        """
        self.horizon = horizon
        self.logger = structlog.get_logger()

    # =========================================================================
    # Trends
    # =========================================================================

    def analyze(self, daily: StoreOperationsRaw, weekly: StoreOperationsRaw) -> WeeklyTrends:
        """
        Build the five tracked trends.

        Args:
            daily: Today's record
            weekly: Weekly aggregate the baselines are derived from

        Returns:
            WeeklyTrends with sales, labor, customer, waste and digital trends
        """
        trends = WeeklyTrends(
            sales_trend=self.compare(
                "total_sales", daily.Total_Sales, weekly.Total_Sales / DAYS_PER_WEEK
            ),
            labor_trend=self.compare("labor_cost", daily.labor, weekly.labor),
            customer_trend=self.compare(
                "customer_count",
                daily.Customer_count,
                weekly.Customer_count / DAYS_PER_WEEK,
            ),
            waste_trend=self.compare(
                "waste",
                daily.waste_gateway + daily.Waste_Alta,
                (weekly.waste_gateway + weekly.Waste_Alta) / DAYS_PER_WEEK,
            ),
            digital_trend=self.compare(
                "digital_sales_percent",
                daily.Digital_Sales_Percent,
                weekly.Digital_Sales_Percent,
            ),
        )

        self.logger.debug(
            "weekly_trends_analyzed",
            sales_change=round(trends.sales_trend.percentage_change, 2),
            labor_change=round(trends.labor_trend.percentage_change, 2),
        )
        return trends

    @staticmethod
    def compare(metric: str, current: float, previous: float) -> TrendAnalysis:
        change = percentage_change(current, previous)
        return TrendAnalysis(
            metric=metric,
            current=current,
            previous=previous,
            percentage_change=change,
            direction=trend_direction(change),
            significance=trend_significance(change),
        )

    # =========================================================================
    # Projection
    # =========================================================================

    def project_sales(
        self,
        daily: StoreOperationsRaw,
        weekly: StoreOperationsRaw,
        horizon: Optional[int] = None,
    ) -> SalesProjection:
        """
        Extrapolate daily sales along the baseline-to-today line.

        Args:
            daily: Today's record
            weekly: Weekly aggregate (baseline is Total_Sales / 7)
            horizon: Periods ahead for horizon_projection (defaults to the engine's)

        Returns:
            SalesProjection with next-period and horizon projections clamped at 0
        """
        periods = horizon or self.horizon
        baseline = weekly.Total_Sales / DAYS_PER_WEEK
        current = daily.Total_Sales

        # x = 0 is the baseline day, x = 1 is today
        slope, intercept, _, _, _ = stats.linregress([0.0, 1.0], [baseline, current])
        slope = float(slope)
        intercept = float(intercept)

        next_period = max(0.0, slope * 2 + intercept)
        horizon_projection = max(0.0, slope * (1 + periods) + intercept)
        direction = trend_direction(percentage_change(current, baseline))

        self.logger.debug(
            "sales_projected",
            baseline=round(baseline, 2),
            current=round(current, 2),
            slope=round(slope, 4),
            horizon=periods,
        )

        return SalesProjection(
            baseline=baseline,
            current=current,
            slope=slope,
            next_period=next_period,
            horizon_periods=periods,
            horizon_projection=horizon_projection,
            direction=direction,
        )
