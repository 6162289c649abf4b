"""
Result models produced by the analysis orchestrator.

A ProcessedResult holds one DomainResult per domain plus an OverallSummary.
Each domain result is all-or-nothing: it either succeeded and carries its
processed tree, or failed and carries only the reason.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .alerts import Alert
from .analysis_config import AnalysisConfig, PerformanceBenchmarks
from .base import ValueModel
from .enums import (
    AlertSeverity,
    AnalysisDomain,
    OperationalGrade,
    PerformanceGrade,
    ProcessingStatus,
)
from .hourly import HourlyValidation, ProcessedHourlySales
from .operations import ProcessedStoreOperations
from .platform import ProcessedPlatformRatings


class DomainResult(ValueModel):
    """Outcome for one domain of one envelope."""

    domain: AnalysisDomain
    status: ProcessingStatus
    error: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == ProcessingStatus.SUCCEEDED


class PlatformRatingsResult(DomainResult):
    domain: AnalysisDomain = AnalysisDomain.PLATFORM_RATINGS
    data: Optional[ProcessedPlatformRatings] = None


class StoreOperationsResult(DomainResult):
    domain: AnalysisDomain = AnalysisDomain.STORE_OPERATIONS
    data: Optional[ProcessedStoreOperations] = None


class HourlySalesResult(DomainResult):
    domain: AnalysisDomain = AnalysisDomain.HOURLY_SALES
    data: Optional[ProcessedHourlySales] = None
    validation: Optional[HourlyValidation] = None


class OverallSummary(ValueModel):
    """Cross-domain headline figures."""

    domains_succeeded: list[AnalysisDomain] = Field(default_factory=list)
    domains_failed: list[AnalysisDomain] = Field(default_factory=list)
    platform_grade: Optional[PerformanceGrade] = None
    platform_performance: Optional[float] = None
    operational_grade: Optional[OperationalGrade] = None
    total_daily_sales: Optional[float] = None
    peak_sales_hour: Optional[int] = None
    total_alerts: int = 0
    alerts_by_severity: dict[AlertSeverity, int] = Field(default_factory=dict)


class ProcessedResult(ValueModel):
    """
    Complete processed output for one envelope and one configuration.

    Contains no timestamps so that reprocessing the same inputs yields an
    identical tree.
    """

    store_id: str
    business_date: str
    lookback_start: Optional[str] = None
    lookback_end: Optional[str] = None
    platform_ratings: PlatformRatingsResult
    store_operations: StoreOperationsResult
    hourly_sales: HourlySalesResult
    overall_summary: OverallSummary

    def domain(self, domain: AnalysisDomain) -> DomainResult:
        return {
            AnalysisDomain.PLATFORM_RATINGS: self.platform_ratings,
            AnalysisDomain.STORE_OPERATIONS: self.store_operations,
            AnalysisDomain.HOURLY_SALES: self.hourly_sales,
        }[domain]

    @property
    def all_alerts(self) -> list[Alert]:
        """Platform alerts followed by operational alerts, each list in priority order."""
        return [
            *self.platform_ratings.alerts,
            *self.store_operations.alerts,
            *self.hourly_sales.alerts,
        ]


class EngineState(ValueModel):
    """Snapshot of the orchestrator exposed to readers."""

    status: ProcessingStatus = ProcessingStatus.IDLE
    error: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
    has_envelope: bool = False
    result: Optional[ProcessedResult] = None
    config: AnalysisConfig = Field(default_factory=AnalysisConfig)
    benchmarks: PerformanceBenchmarks = Field(default_factory=PerformanceBenchmarks)
    last_processed_at: Optional[datetime] = None
