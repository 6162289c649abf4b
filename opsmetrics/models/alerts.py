"""
Alert models.

Domain processors emit AlertCandidate proposals; the alert aggregator
classifies, deduplicates, filters, orders and caps them into Alert values.
Platform alerts carry a platform, operational alerts carry a category; both
share one shape.
"""

from typing import Optional, Union

from pydantic import ConfigDict, Field, field_validator

from .base import ValueModel
from .enums import (
    AlertCategory,
    AlertImpact,
    AlertPriority,
    AlertSeverity,
    AnalysisDomain,
    DeliveryPlatform,
)


class AlertCandidate(ValueModel):
    """
    An unfiltered, unclassified alert proposal.

    Attributes:
        domain: Domain that produced the candidate
        metric: Metric identifier (raw field name or rule name)
        title: Short headline
        message: Human-readable description
        current_value: Observed value (platform scores may be labels)
        target_value: Target the value is compared with, if any
        recommendations: Ordered remediation suggestions
        platform: Delivery platform for platform alerts
        category: Category for operational alerts
        is_critical: Whether the metric is configured as critical
    """

    domain: AnalysisDomain
    metric: str
    title: str
    message: str
    current_value: Optional[Union[float, str]] = None
    target_value: Optional[float] = None
    recommendations: list[str] = Field(default_factory=list)
    platform: Optional[DeliveryPlatform] = None
    category: Optional[AlertCategory] = None
    is_critical: bool = False

    @field_validator("message")
    @classmethod
    def validate_message_not_empty(cls, v: str) -> str:
        """Ensure alert message is not empty."""
        if not v or not v.strip():
            raise ValueError("Alert message must not be empty")
        return v.strip()

    @property
    def dedup_key(self) -> tuple:
        """Identity of the condition this candidate reports."""
        scope = self.platform.value if self.platform else (
            self.category.value if self.category else ""
        )
        return (self.domain.value, scope, self.metric)


class Alert(AlertCandidate):
    """
    A classified alert.

    severity, priority and impact derive only from |variance|, the signed
    percentage deviation of current_value from target_value.
    """

    severity: AlertSeverity
    priority: AlertPriority
    impact: AlertImpact
    variance: float = 0.0

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "domain": "store_operations",
                "metric": "labor_cost",
                "title": "Labor Cost Exceeded",
                "message": "Labor cost is 40.0%, above target of 30.0%",
                "current_value": 0.40,
                "target_value": 0.30,
                "variance": 33.33,
                "severity": "critical",
                "priority": "urgent",
                "impact": "severe",
                "category": "cost_control",
                "platform": None,
                "is_critical": False,
                "recommendations": [
                    "Review staffing schedules for optimization",
                    "Analyze peak hour coverage",
                    "Consider cross-training staff for flexibility",
                ],
            }
        }
    )
