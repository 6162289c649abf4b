"""
Alert Aggregator: classification, deduplication and capping of alerts.

Both the platform-ratings and store-operations processors emit
AlertCandidate proposals. The aggregator turns them into Alert values in one
pass:

1. classify: variance of current vs target sets severity, priority, impact
2. deduplicate on (domain, platform or category, metric), first wins
3. filter to monitored platforms / categories and included priorities
4. stable sort by priority descending (generation order breaks ties)
5. truncate to max_alerts

Version: alert_aggregator_v1
"""

from typing import Iterable, Optional

import structlog

from opsmetrics.models.alerts import Alert, AlertCandidate
from opsmetrics.models.enums import (
    AlertCategory,
    AlertImpact,
    AlertPriority,
    AlertSeverity,
    DeliveryPlatform,
)
from opsmetrics.utils.numeric import to_number

from .trends import percentage_change

logger = structlog.get_logger()


# (minimum |variance| in percent, severity, priority, impact), checked top down
ALERT_BANDS = [
    (30.0, AlertSeverity.CRITICAL, AlertPriority.URGENT, AlertImpact.SEVERE),
    (20.0, AlertSeverity.ERROR, AlertPriority.HIGH, AlertImpact.HIGH),
    (10.0, AlertSeverity.WARNING, AlertPriority.MEDIUM, AlertImpact.MODERATE),
]

DEFAULT_BAND = (AlertSeverity.INFO, AlertPriority.LOW, AlertImpact.MINIMAL)

PRIORITY_RANK = {
    AlertPriority.URGENT: 4,
    AlertPriority.HIGH: 3,
    AlertPriority.MEDIUM: 2,
    AlertPriority.LOW: 1,
}


def alert_variance(current_value, target_value: Optional[float]) -> float:
    """
    Signed percentage deviation of current from target.

    0.0 when either side is missing or non-numeric, or the target is 0.
    """
    current = to_number(current_value)
    if current is None or target_value is None:
        return 0.0
    return percentage_change(current, target_value)


def classify(variance: float) -> tuple[AlertSeverity, AlertPriority, AlertImpact]:
    """Severity, priority and impact from |variance| alone."""
    magnitude = abs(variance)
    for cut, severity, priority, impact in ALERT_BANDS:
        if magnitude >= cut:
            return severity, priority, impact
    return DEFAULT_BAND


class AlertAggregator:
    """
    Single parameterized alert pipeline shared by all domains.

    Example:
        >>> aggregator = AlertAggregator()
        >>> alerts = aggregator.aggregate(candidates, max_alerts=8)
        >>> [a.priority for a in alerts]
        [<AlertPriority.URGENT: 'urgent'>, <AlertPriority.MEDIUM: 'medium'>]
    """

    def __init__(self):
        self.logger = structlog.get_logger()

    def build(self, candidate: AlertCandidate) -> Alert:
        """Classify one candidate into an Alert."""
        variance = alert_variance(candidate.current_value, candidate.target_value)
        severity, priority, impact = classify(variance)
        return Alert(
            **candidate.model_dump(),
            severity=severity,
            priority=priority,
            impact=impact,
            variance=variance,
        )

    def aggregate(
        self,
        candidates: Iterable[AlertCandidate],
        max_alerts: int,
        monitored_categories: Optional[Iterable[AlertCategory]] = None,
        monitored_platforms: Optional[Iterable[DeliveryPlatform]] = None,
        include_priorities: Optional[Iterable[AlertPriority]] = None,
    ) -> list[Alert]:
        """
        Run the full pipeline over one domain's candidates.

        Args:
            candidates: Candidates in generation order
            max_alerts: Cap on the returned list
            monitored_categories: Categories kept (None keeps all); candidates
                without a category are unaffected
            monitored_platforms: Platforms kept (None keeps all); candidates
                without a platform are unaffected
            include_priorities: Priorities kept (None keeps all)

        Returns:
            At most max_alerts alerts, priority descending
        """
        candidates = list(candidates)
        categories = set(monitored_categories) if monitored_categories is not None else None
        platforms = set(monitored_platforms) if monitored_platforms is not None else None
        priorities = set(include_priorities) if include_priorities is not None else None

        seen: set[tuple] = set()
        alerts: list[Alert] = []
        duplicates = 0

        for candidate in candidates:
            key = candidate.dedup_key
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)

            if categories is not None and candidate.category is not None:
                if candidate.category not in categories:
                    continue
            if platforms is not None and candidate.platform is not None:
                if candidate.platform not in platforms:
                    continue

            alert = self.build(candidate)
            if priorities is not None and alert.priority not in priorities:
                continue
            alerts.append(alert)

        # sorted() is stable, so equal priorities keep generation order
        alerts = sorted(alerts, key=lambda a: PRIORITY_RANK[a.priority], reverse=True)
        kept = alerts[: max(0, max_alerts)]

        self.logger.info(
            "alerts_aggregated",
            candidates=len(candidates),
            duplicates=duplicates,
            kept=len(kept),
            truncated=len(alerts) - len(kept),
        )
        return kept
