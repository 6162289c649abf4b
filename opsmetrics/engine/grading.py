"""
Grading Engine: letter grades, performance levels and the composite
operational grade.

The composite grade is a weighted sum of four contributions:

    financial_grade_score * w_financial
    + (efficiency_score / 100 * 4) * w_operational
    + quality_grade_score * w_quality
    + cost_control_grade_score * w_cost_control

Letter grades map onto a fixed 4/3/2/1/0 scale and the composite is bucketed
at 3.5 / 3.0 / 2.5 / 2.0. Weights are expected to sum to 1.0 but any weights
are accepted; a mismatch is only logged.

Version: grading_v1
"""

from typing import Union

import structlog

from opsmetrics.models.analysis_config import CashVarianceRange, GradeWeights, PerformanceThresholds
from opsmetrics.models.enums import (
    CostControlGrade,
    OperationalGrade,
    PerformanceGrade,
    PerformanceLevel,
    QualityGrade,
)
from opsmetrics.utils.numeric import is_within_acceptable_range

logger = structlog.get_logger()


# ============================================================================
# Grade tables
# ============================================================================

Grade = Union[PerformanceGrade, QualityGrade, CostControlGrade]

GRADE_SCORES: dict[Grade, int] = {
    PerformanceGrade.A_PLUS: 4,
    PerformanceGrade.A: 4,
    QualityGrade.PREMIUM: 4,
    CostControlGrade.OPTIMAL: 4,
    PerformanceGrade.B_PLUS: 3,
    PerformanceGrade.B: 3,
    QualityGrade.HIGH: 3,
    CostControlGrade.EFFICIENT: 3,
    PerformanceGrade.C_PLUS: 2,
    PerformanceGrade.C: 2,
    QualityGrade.STANDARD: 2,
    CostControlGrade.ACCEPTABLE: 2,
    PerformanceGrade.D_PLUS: 1,
    PerformanceGrade.D: 1,
    QualityGrade.BELOW_STANDARD: 1,
    CostControlGrade.CONCERNING: 1,
}

# (minimum composite, grade), checked top down
OPERATIONAL_GRADE_CUTS = [
    (3.5, OperationalGrade.OUTSTANDING),
    (3.0, OperationalGrade.EXCEEDS_EXPECTATIONS),
    (2.5, OperationalGrade.MEETS_EXPECTATIONS),
    (2.0, OperationalGrade.BELOW_EXPECTATIONS),
]

# Platform summary letter grade by overall on-track percentage
PERFORMANCE_GRADE_CUTS = [
    (97.0, PerformanceGrade.A_PLUS),
    (93.0, PerformanceGrade.A),
    (90.0, PerformanceGrade.B_PLUS),
    (87.0, PerformanceGrade.B),
    (83.0, PerformanceGrade.C_PLUS),
    (80.0, PerformanceGrade.C),
    (70.0, PerformanceGrade.D),
]

# Financial grade by |actual labor - target labor|
LABOR_VARIANCE_CUTS = [
    (0.02, PerformanceGrade.A),
    (0.05, PerformanceGrade.B),
    (0.08, PerformanceGrade.C),
]

QUALITY_GRADE_CUTS = [
    (0.95, QualityGrade.PREMIUM),
    (0.90, QualityGrade.HIGH),
    (0.85, QualityGrade.STANDARD),
    (0.75, QualityGrade.BELOW_STANDARD),
]

COST_CONTROL_GRADE_CUTS = [
    (0.9, CostControlGrade.OPTIMAL),
    (0.7, CostControlGrade.EFFICIENT),
    (0.5, CostControlGrade.ACCEPTABLE),
    (0.3, CostControlGrade.CONCERNING),
]

EFFICIENCY_SCALE = 4.0
LABOR_TOLERANCE = 0.1
WEIGHT_SUM_TOLERANCE = 0.01


class GradingEngine:
    """
    Classifies processed metrics into grades and composes the overall grade.

    All classifiers are pure; the instance only carries the weights used for
    the composite.

    Example:
        >>> engine = GradingEngine(GradeWeights())
        >>> engine.operational_grade(PerformanceGrade.A, 100.0, QualityGrade.PREMIUM, CostControlGrade.OPTIMAL)
        <OperationalGrade.OUTSTANDING: 'Outstanding'>
    """

    def __init__(self, weights: GradeWeights):
        """
        Args:
            weights: Composite weights (expected, not required, to sum to 1.0)
        """
        self.weights = weights
        self.logger = structlog.get_logger()

        if abs(weights.total - 1.0) > WEIGHT_SUM_TOLERANCE:
            self.logger.warning(
                "grade_weights_not_normalized",
                weight_sum=round(weights.total, 4),
            )

    # =========================================================================
    # Composite
    # =========================================================================

    def composite_score(
        self,
        financial_grade: Grade,
        efficiency_score: float,
        quality_grade: Grade,
        cost_control_grade: Grade,
    ) -> float:
        """
        Weighted composite on the 0-4 grade scale.

        The efficiency contribution is not capped, so an efficiency score above
        100 lifts the composite past 4 * w_operational.
        """
        return (
            self.grade_to_score(financial_grade) * self.weights.financial
            + (efficiency_score / 100 * EFFICIENCY_SCALE) * self.weights.operational
            + self.grade_to_score(quality_grade) * self.weights.quality
            + self.grade_to_score(cost_control_grade) * self.weights.cost_control
        )

    def operational_grade(
        self,
        financial_grade: Grade,
        efficiency_score: float,
        quality_grade: Grade,
        cost_control_grade: Grade,
    ) -> OperationalGrade:
        """Bucket the composite score into the five operational tiers."""
        score = self.composite_score(
            financial_grade, efficiency_score, quality_grade, cost_control_grade
        )
        return self.composite_to_grade(score)

    @staticmethod
    def composite_to_grade(score: float) -> OperationalGrade:
        for cut, grade in OPERATIONAL_GRADE_CUTS:
            if score >= cut:
                return grade
        return OperationalGrade.NEEDS_IMPROVEMENT

    @staticmethod
    def grade_to_score(grade: Grade) -> int:
        """Map any letter/quality/cost grade onto the 4/3/2/1/0 scale."""
        return GRADE_SCORES.get(grade, 0)

    # =========================================================================
    # Classifiers
    # =========================================================================

    @staticmethod
    def performance_level(
        percentage: float, thresholds: PerformanceThresholds
    ) -> PerformanceLevel:
        """Five-tier level from an on-track percentage (cut points inclusive)."""
        if percentage >= thresholds.excellent:
            return PerformanceLevel.EXCELLENT
        if percentage >= thresholds.good:
            return PerformanceLevel.GOOD
        if percentage >= thresholds.fair:
            return PerformanceLevel.FAIR
        if percentage >= thresholds.poor:
            return PerformanceLevel.POOR
        return PerformanceLevel.CRITICAL

    @staticmethod
    def performance_grade(percentage: float) -> PerformanceGrade:
        """Letter grade A+ to F from an on-track percentage."""
        for cut, grade in PERFORMANCE_GRADE_CUTS:
            if percentage >= cut:
                return grade
        return PerformanceGrade.F

    @staticmethod
    def financial_grade(labor_ratio: float, labor_target: float) -> PerformanceGrade:
        """Grade how far labor cost sits from its target, in either direction."""
        variance = abs(labor_ratio - labor_target)
        for cut, grade in LABOR_VARIANCE_CUTS:
            if variance <= cut:
                return grade
        return PerformanceGrade.D

    @staticmethod
    def quality_grade(customer_service: float) -> QualityGrade:
        for cut, grade in QUALITY_GRADE_CUTS:
            if customer_service >= cut:
                return grade
        return QualityGrade.CRITICAL

    @staticmethod
    def cost_control_grade(
        labor_ratio: float,
        labor_target: float,
        waste_percentage: float,
        waste_target: float,
        cash_variance: float,
        cash_range: CashVarianceRange,
    ) -> CostControlGrade:
        """
        Average of three pass/fail checks bucketed into five tiers.

        Checks: labor within 10% of target, waste at or under target, cash
        over/short inside the configured band.
        """
        checks = [
            is_within_acceptable_range(labor_ratio, labor_target, LABOR_TOLERANCE),
            waste_percentage <= waste_target,
            cash_range.contains(cash_variance),
        ]
        score = sum(1 for passed in checks if passed) / len(checks)
        for cut, grade in COST_CONTROL_GRADE_CUTS:
            if score >= cut:
                return grade
        return CostControlGrade.CRITICAL
