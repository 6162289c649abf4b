"""
Enumeration types for the Operational Metrics Analysis Engine.

All enums inherit from str so that processed trees and export documents
serialize to the same literal wire values the dashboard already consumes.
"""

from enum import Enum
from typing import Optional


class ProcessingStatus(str, Enum):
    """Lifecycle of the orchestrator and of each analysis domain."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AnalysisDomain(str, Enum):
    """The three independent domains carried by one raw envelope."""

    PLATFORM_RATINGS = "platform_ratings"
    STORE_OPERATIONS = "store_operations"
    HOURLY_SALES = "hourly_sales"


class TrackingStatus(str, Enum):
    """
    Tri-state classification attached to each tracked platform metric.

    The upstream report encodes these as "OT", "NA" and "OFF"; both spellings
    are accepted on input and normalized to the wire values below.
    """

    ON_TRACK = "on_track"
    NOT_APPLICABLE = "not_applicable"
    OFF_TRACK = "off_track"

    @classmethod
    def _missing_(cls, value: object) -> Optional["TrackingStatus"]:
        if isinstance(value, str):
            code = value.strip().upper()
            aliases = {
                "OT": cls.ON_TRACK,
                "NA": cls.NOT_APPLICABLE,
                "OFF": cls.OFF_TRACK,
                "ON_TRACK": cls.ON_TRACK,
                "NOT_APPLICABLE": cls.NOT_APPLICABLE,
                "OFF_TRACK": cls.OFF_TRACK,
            }
            return aliases.get(code)
        return None


class DeliveryPlatform(str, Enum):
    """Third-party delivery platforms reported in the ratings record."""

    DOORDASH = "DoorDash"
    UBEREATS = "UberEats"
    GRUBHUB = "GrubHub"


class MetricUnit(str, Enum):
    """Display unit for a platform KPI."""

    RATING = "rating"
    PERCENTAGE = "percentage"
    CURRENCY = "currency"
    MINUTES = "minutes"
    HOURS = "hours"
    COUNT = "count"
    RATIO = "ratio"


class PerformanceLevel(str, Enum):
    """Five-tier performance classification."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class PerformanceGrade(str, Enum):
    """Letter grade used for platform summaries and financial performance."""

    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    C_PLUS = "C+"
    C = "C"
    D_PLUS = "D+"
    D = "D"
    F = "F"


class OperationalGrade(str, Enum):
    """Composite store-operations grade."""

    OUTSTANDING = "Outstanding"
    EXCEEDS_EXPECTATIONS = "Exceeds Expectations"
    MEETS_EXPECTATIONS = "Meets Expectations"
    BELOW_EXPECTATIONS = "Below Expectations"
    NEEDS_IMPROVEMENT = "Needs Improvement"


class QualityGrade(str, Enum):
    """Service quality grade derived from the customer service score."""

    PREMIUM = "Premium"
    HIGH = "High"
    STANDARD = "Standard"
    BELOW_STANDARD = "Below Standard"
    CRITICAL = "Critical"


class CostControlGrade(str, Enum):
    """Cost control grade derived from labor, waste and cash checks."""

    OPTIMAL = "Optimal"
    EFFICIENT = "Efficient"
    ACCEPTABLE = "Acceptable"
    CONCERNING = "Concerning"
    CRITICAL = "Critical"


class SalesChannelType(str, Enum):
    """Store-level sales channel buckets."""

    TRADITIONAL = "traditional"
    DIGITAL = "digital"
    DELIVERY = "delivery"
    PHONE = "phone"
    DRIVE_THRU = "drive_thru"


class ChannelPerformanceLevel(str, Enum):
    """Relative performance of a sales channel."""

    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    BELOW_AVERAGE = "below_average"
    POOR = "poor"


class HourlyChannel(str, Enum):
    """Point-of-sale channels reported per hour (upstream field names)."""

    WEBSITE = "Website"
    MOBILE = "Mobile"
    PHONE_SALES = "Phone_Sales"
    DRIVE_THRU = "Drive_Thru"
    CALL_CENTER = "Call_Center_Agent"


class TrendDirection(str, Enum):
    """Five-tier direction of a percentage change."""

    STRONG_UP = "strong_up"
    UP = "up"
    STABLE = "stable"
    DOWN = "down"
    STRONG_DOWN = "strong_down"


class TrendSignificance(str, Enum):
    """Five-tier magnitude of a percentage change."""

    HIGHLY_SIGNIFICANT = "highly_significant"
    SIGNIFICANT = "significant"
    MODERATE = "moderate"
    MINOR = "minor"
    NEGLIGIBLE = "negligible"


class HourTrend(str, Enum):
    """Deviation of one hour from the daily hourly average."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class AlertSeverity(str, Enum):
    """Alert severity."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AlertPriority(str, Enum):
    """Alert priority. Ordering is defined by PRIORITY_RANK in the aggregator."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AlertImpact(str, Enum):
    """Estimated business impact of an alert."""

    MINIMAL = "minimal"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"


class AlertCategory(str, Enum):
    """Category of an operational alert."""

    FINANCIAL = "financial"
    OPERATIONAL = "operational"
    QUALITY = "quality"
    COST_CONTROL = "cost_control"
    SALES = "sales"


class HourlySort(str, Enum):
    """Sort orders for the filtered hourly view."""

    HOUR_ASC = "hour_asc"
    HOUR_DESC = "hour_desc"
    SALES_ASC = "sales_asc"
    SALES_DESC = "sales_desc"
    ORDERS_ASC = "orders_asc"
    ORDERS_DESC = "orders_desc"


class ExportFormat(str, Enum):
    """Read-only document views over a processed result."""

    COMPREHENSIVE = "comprehensive"
    EXECUTIVE_SUMMARY = "executive_summary"
    ALERTS_ONLY = "alerts_only"
    CHANNEL_COMPARISON = "channel_comparison"
    PLATFORM_COMPARISON = "platform_comparison"
    HOURLY_BREAKDOWN = "hourly_breakdown"
