"""
Operational metrics analysis engine.

This package turns one raw store/date envelope into graded, alerted results:

- Domain processors: platform ratings, store operations, hourly sales
- Grading: performance levels, letter grades and the composite grade
- Trends: day-over-week variance and the sales projection
- Alerts: one parameterized classify/dedup/sort/cap pipeline
- Orchestrator: the idle/loading/succeeded/failed lifecycle
- Views and exports: read-only documents over the current result

Processors are pure functions of (record, config); only the orchestrator
holds state.
"""

from functools import lru_cache

from opsmetrics.config import get_settings
from opsmetrics.engine.alerts import AlertAggregator
from opsmetrics.engine.exports import ExportService
from opsmetrics.engine.grading import GradingEngine
from opsmetrics.engine.orchestrator import AnalysisOrchestrator, analyze_envelope
from opsmetrics.engine.trends import TrendEngine
from opsmetrics.models.analysis_config import AnalysisConfig

__version__ = "1.0.0"

__all__ = [
    "AlertAggregator",
    "AnalysisOrchestrator",
    "ExportService",
    "GradingEngine",
    "TrendEngine",
    "analyze_envelope",
    "get_orchestrator",
]


@lru_cache
def get_orchestrator() -> AnalysisOrchestrator:
    """
    Process-wide orchestrator for the HTTP service.

    Seeded from Settings; later configuration changes go through
    AnalysisOrchestrator.update_config.
    """
    settings = get_settings()
    config = AnalysisConfig().merged({
        "platform": {"alert_settings": {"max_alerts": settings.default_platform_max_alerts}},
        "operations": {
            "alert_settings": {"max_alerts": settings.default_operations_max_alerts},
            "targets": {"labor_cost_target": settings.labor_cost_target},
        },
    })
    return AnalysisOrchestrator(config=config)
