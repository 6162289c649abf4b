"""
Analysis configuration models.

Configuration is an explicit value handed to every processor call; nothing in
the engine reads ambient settings. Updating any part of it makes the
orchestrator reprocess the envelope it currently holds.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import AlertCategory, AlertPriority, DeliveryPlatform


class ConfigModel(BaseModel):
    """Base for configuration values: immutable, strict about unknown keys."""

    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================================
# Platform ratings
# ============================================================================


class PerformanceThresholds(ConfigModel):
    """Cut points (percent) for the five performance levels."""

    excellent: float = Field(default=95.0, ge=0.0, le=100.0)
    good: float = Field(default=85.0, ge=0.0, le=100.0)
    fair: float = Field(default=70.0, ge=0.0, le=100.0)
    poor: float = Field(default=50.0, ge=0.0, le=100.0)


class PlatformAlertSettings(ConfigModel):
    """Alert generation settings for platform KPIs."""

    enable_alerts: bool = True
    max_alerts: int = Field(default=10, ge=0)
    include_priorities: list[AlertPriority] = Field(
        default_factory=lambda: list(AlertPriority)
    )
    monitored_platforms: list[DeliveryPlatform] = Field(
        default_factory=lambda: list(DeliveryPlatform)
    )


class PlatformAnalysisConfig(ConfigModel):
    """Configuration for the platform-ratings domain."""

    performance_thresholds: PerformanceThresholds = Field(
        default_factory=PerformanceThresholds
    )
    critical_metrics: list[str] = Field(
        default_factory=lambda: [
            "DD_Ratings_Average_Rating",
            "UE_Customer_reviews_overview",
            "GH_Rating",
        ]
    )
    alert_settings: PlatformAlertSettings = Field(default_factory=PlatformAlertSettings)


# ============================================================================
# Store operations
# ============================================================================


class OperationsTargets(ConfigModel):
    """Target ratios for store operations."""

    labor_cost_target: float = Field(default=0.30, ge=0.0)
    customer_service_target: float = Field(default=0.95, ge=0.0)
    digital_sales_target: float = Field(default=0.65, ge=0.0)
    portal_utilization_target: float = Field(default=0.95, ge=0.0)
    waste_percentage_target: float = Field(default=0.03, ge=0.0)
    customer_count_target: float = Field(default=1.0, ge=0.0)


class OperationsAlertSettings(ConfigModel):
    """
    Alert generation settings for store operations.

    min_variance_threshold is a fraction: a threshold breach whose variance
    against a non-zero target is smaller than this (0.05 = 5%) is not raised.
    """

    enable_alerts: bool = True
    max_alerts: int = Field(default=8, ge=0)
    min_variance_threshold: float = Field(default=0.05, ge=0.0)
    monitored_categories: list[AlertCategory] = Field(
        default_factory=lambda: [
            AlertCategory.FINANCIAL,
            AlertCategory.OPERATIONAL,
            AlertCategory.QUALITY,
            AlertCategory.COST_CONTROL,
        ]
    )


class GradeWeights(ConfigModel):
    """
    Weights of the composite operational grade.

    Expected to sum to 1.0; this is not enforced.
    """

    financial: float = 0.35
    operational: float = 0.25
    quality: float = 0.25
    cost_control: float = 0.15

    @property
    def total(self) -> float:
        return self.financial + self.operational + self.quality + self.cost_control


class CashVarianceRange(ConfigModel):
    """Acceptable over/short band in currency units."""

    min: float = -5.0
    max: float = 5.0

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    @property
    def limit(self) -> float:
        """Largest acceptable absolute variance."""
        return max(abs(self.min), abs(self.max))


class CostThresholds(ConfigModel):
    """Hard ceilings that raise operational alerts."""

    max_labor_cost: float = Field(default=0.35, ge=0.0)
    max_waste_percentage: float = Field(default=0.05, ge=0.0)
    cash_variance_range: CashVarianceRange = Field(default_factory=CashVarianceRange)


class OperationsAnalysisConfig(ConfigModel):
    """Configuration for the store-operations domain."""

    targets: OperationsTargets = Field(default_factory=OperationsTargets)
    alert_settings: OperationsAlertSettings = Field(default_factory=OperationsAlertSettings)
    grade_weights: GradeWeights = Field(default_factory=GradeWeights)
    cost_thresholds: CostThresholds = Field(default_factory=CostThresholds)


# ============================================================================
# Hourly sales
# ============================================================================


class HourlyAnalysisConfig(ConfigModel):
    """Configuration for hourly views and rounding in exports."""

    minimum_sales_threshold: float = Field(default=0.01, ge=0.0)
    excluded_hours: list[int] = Field(default_factory=list)
    include_zero_hours: bool = False
    currency_precision: int = Field(default=2, ge=0, le=6)
    percentage_precision: int = Field(default=2, ge=0, le=6)

    @field_validator("excluded_hours")
    @classmethod
    def validate_hours(cls, v: list[int]) -> list[int]:
        """Hours are indexes 0-23."""
        for hour in v:
            if not 0 <= hour <= 23:
                raise ValueError(f"Excluded hour {hour} outside 0-23")
        return v


# ============================================================================
# Benchmarks
# ============================================================================


class BenchmarkSet(ConfigModel):
    """One benchmark profile."""

    labor_cost: float
    waste_percentage: float
    customer_service: float
    digital_sales: float


class PerformanceBenchmarks(ConfigModel):
    """Historical, industry and target benchmark profiles."""

    historical: BenchmarkSet = Field(
        default_factory=lambda: BenchmarkSet(
            labor_cost=0.32, waste_percentage=0.035, customer_service=0.92, digital_sales=0.60
        )
    )
    industry: BenchmarkSet = Field(
        default_factory=lambda: BenchmarkSet(
            labor_cost=0.30, waste_percentage=0.03, customer_service=0.95, digital_sales=0.65
        )
    )
    targets: BenchmarkSet = Field(
        default_factory=lambda: BenchmarkSet(
            labor_cost=0.28, waste_percentage=0.025, customer_service=0.97, digital_sales=0.70
        )
    )


# ============================================================================
# Root
# ============================================================================


class AnalysisConfig(ConfigModel):
    """
    Complete engine configuration.

    Example:
        >>> config = AnalysisConfig().merged({"operations": {"targets": {"labor_cost_target": 0.28}}})
        >>> config.operations.targets.labor_cost_target
        0.28
    """

    platform: PlatformAnalysisConfig = Field(default_factory=PlatformAnalysisConfig)
    operations: OperationsAnalysisConfig = Field(default_factory=OperationsAnalysisConfig)
    hourly: HourlyAnalysisConfig = Field(default_factory=HourlyAnalysisConfig)

    def merged(self, overrides: dict[str, Any]) -> "AnalysisConfig":
        """
        Return a new config with a partial nested update applied.

        Args:
            overrides: Nested dict of fields to replace (lists replace wholesale)

        Returns:
            Validated AnalysisConfig

        Raises:
            pydantic.ValidationError: If the merged document is invalid
        """
        base = self.model_dump(mode="json")
        return AnalysisConfig.model_validate(_deep_merge(base, overrides))


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
