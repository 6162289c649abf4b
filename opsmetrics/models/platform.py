"""
Processed delivery-platform models.

One PlatformMetrics per delivery platform plus a cross-platform summary.
"""

from typing import Optional, Union

from pydantic import Field

from .base import ValueModel
from .enums import (
    DeliveryPlatform,
    MetricUnit,
    PerformanceGrade,
    PerformanceLevel,
    TrackingStatus,
    TrendDirection,
)


class KPI(ValueModel):
    """A single tracked platform indicator."""

    name: str
    label: str
    value: Optional[Union[float, str]] = None
    status: TrackingStatus
    unit: MetricUnit
    is_critical: bool = False
    target: Optional[float] = None
    trend: TrendDirection = TrendDirection.STABLE


class PlatformMetrics(ValueModel):
    """
    Processed metrics for one delivery platform.

    Attributes:
        platform: Delivery platform
        overall_rating: Headline customer rating for the platform
        kpis: Ordered KPI list
        on_track_count: KPIs whose status is on_track
        total_applicable_metrics: KPIs whose status is not not_applicable
        performance_percentage: on_track / applicable * 100, 0 with no applicable KPIs
        performance_level: Level derived from the percentage and thresholds
    """

    platform: DeliveryPlatform
    overall_rating: float = 0.0
    kpis: list[KPI] = Field(default_factory=list)
    on_track_count: int = Field(default=0, ge=0)
    total_applicable_metrics: int = Field(default=0, ge=0)
    performance_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    performance_level: PerformanceLevel = PerformanceLevel.CRITICAL

    @property
    def has_applicable_metrics(self) -> bool:
        return self.total_applicable_metrics > 0

    @property
    def off_track_kpis(self) -> list[KPI]:
        return [kpi for kpi in self.kpis if kpi.status == TrackingStatus.OFF_TRACK]


class PlatformSummary(ValueModel):
    """Cross-platform summary over platforms with applicable KPIs."""

    average_rating: float = 0.0
    total_on_track: int = 0
    total_applicable: int = 0
    overall_performance: float = 0.0
    best_platform: DeliveryPlatform = DeliveryPlatform.DOORDASH
    attention_required: DeliveryPlatform = DeliveryPlatform.DOORDASH
    performance_grade: PerformanceGrade = PerformanceGrade.F


class ProcessedPlatformRatings(ValueModel):
    """Processed platform-ratings tree, keyed by platform in fixed order."""

    platforms: dict[DeliveryPlatform, PlatformMetrics]
    summary: PlatformSummary
    # Raw score fields carrying a value other than null or zero
    reported_scores: int = Field(default=0, ge=0)

    def get(self, platform: DeliveryPlatform) -> Optional[PlatformMetrics]:
        return self.platforms.get(platform)


class PlatformFilter(ValueModel):
    """
    View filter over processed platforms.

    A platform outside ``platforms`` or rated below ``min_rating`` is dropped;
    the KPI flags narrow each remaining platform's KPI list.
    """

    platforms: Optional[list[DeliveryPlatform]] = None
    min_rating: Optional[float] = None
    off_track_only: bool = False
    critical_only: bool = False
