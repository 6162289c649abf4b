"""
Pydantic v2 data models for the operational metrics engine.

Model Organization:
    - enums: Closed str enumerations with their wire values
    - envelope: Raw response envelope and the three raw domain records
    - analysis_config: Engine configuration and benchmark profiles
    - platform: Processed delivery-platform metrics
    - operations: Processed store-operations metrics, trends, projection
    - hourly: Processed hourly sales, periods, validation
    - alerts: Alert candidates and classified alerts
    - results: Per-domain results, processed result and engine state
    - views: Derived read-only views and export documents

Raw models mirror upstream field names; processed models are frozen and
replaced wholesale.

Usage:
    >>> from opsmetrics.models import RawResponseEnvelope, StoreOperationsRaw
    >>> envelope = RawResponseEnvelope.model_validate(response_json)
    >>> StoreOperationsRaw.model_validate(envelope.reports.daily.store_operations).Total_Sales
    2850.0
"""

# Enumerations
from .enums import (
    AlertCategory,
    AlertImpact,
    AlertPriority,
    AlertSeverity,
    AnalysisDomain,
    CostControlGrade,
    DeliveryPlatform,
    ExportFormat,
    HourlySort,
    OperationalGrade,
    PerformanceGrade,
    PerformanceLevel,
    ProcessingStatus,
    QualityGrade,
    SalesChannelType,
    TrackingStatus,
    TrendDirection,
    TrendSignificance,
)

# Raw envelope
from .envelope import (
    HourlySalesRaw,
    PlatformRatingsRaw,
    RawResponseEnvelope,
    StoreOperationsRaw,
)

# Configuration
from .analysis_config import AnalysisConfig, PerformanceBenchmarks

# Processed trees
from .hourly import HourlyFilter, ProcessedHourlySales
from .operations import ProcessedStoreOperations
from .platform import PlatformFilter, ProcessedPlatformRatings

# Alerts and results
from .alerts import Alert, AlertCandidate
from .results import EngineState, ProcessedResult

# Views
from .views import ExportDocument

__all__ = [
    # Enumerations
    "AlertCategory",
    "AlertImpact",
    "AlertPriority",
    "AlertSeverity",
    "AnalysisDomain",
    "CostControlGrade",
    "DeliveryPlatform",
    "ExportFormat",
    "HourlySort",
    "OperationalGrade",
    "PerformanceGrade",
    "PerformanceLevel",
    "ProcessingStatus",
    "QualityGrade",
    "SalesChannelType",
    "TrackingStatus",
    "TrendDirection",
    "TrendSignificance",
    # Raw envelope
    "HourlySalesRaw",
    "PlatformRatingsRaw",
    "RawResponseEnvelope",
    "StoreOperationsRaw",
    # Configuration
    "AnalysisConfig",
    "PerformanceBenchmarks",
    # Processed trees
    "HourlyFilter",
    "PlatformFilter",
    "ProcessedHourlySales",
    "ProcessedPlatformRatings",
    "ProcessedStoreOperations",
    # Alerts and results
    "Alert",
    "AlertCandidate",
    "EngineState",
    "ProcessedResult",
    # Views
    "ExportDocument",
]

# Schema version registry for tracking evolution
SCHEMA_VERSIONS = {
    "raw_response_envelope": "envelope_v1",
    "analysis_config": "config_v1",
    "processed_result": "result_v1",
    "alert": "alert_v1",
    "export_document": "export_v1",
}


def get_schema_version(model_name: str) -> str:
    """
    Get the current schema version for a model.

    Raises:
        KeyError: If model_name is not recognized
    """
    return SCHEMA_VERSIONS[model_name]
