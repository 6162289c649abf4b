"""
Export Service: read-only documents derived from the current result.

Each format selects a subset of the processed result (plus computed views)
and serializes it to plain JSON-compatible data. Documents are built per call
and have no lifecycle of their own.

Version: exports_v1
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional

import structlog

from opsmetrics.engine.views import (
    compare_benchmarks,
    compare_platforms,
    rank_platforms,
    summarize_alerts,
)
from opsmetrics.models.analysis_config import HourlyAnalysisConfig, PerformanceBenchmarks
from opsmetrics.models.enums import AlertSeverity, ExportFormat
from opsmetrics.models.results import ProcessedResult
from opsmetrics.models.views import ExportDocument

logger = structlog.get_logger()

EXECUTIVE_ALERT_SEVERITIES = {AlertSeverity.CRITICAL, AlertSeverity.ERROR}

# Hourly fields rounded with the currency precision; percentages use the other
CURRENCY_FIELDS = {
    "total_sales", "phone_sales", "call_center_sales", "drive_thru_sales",
    "website_sales", "mobile_sales", "average_order_value", "current_sales",
    "amount", "total_daily_sales", "peak_sales_amount", "sales_per_hour",
}
PERCENTAGE_FIELDS = {
    "digital_sales_percentage", "percentage", "percentage_change",
    "percentage_of_daily", "completeness",
}


def _dump(model) -> Optional[dict[str, Any]]:
    return model.model_dump(mode="json") if model is not None else None


def round_fields(data: Any, currency_precision: int, percentage_precision: int) -> Any:
    """Recursively round currency and percentage fields by name."""
    if isinstance(data, list):
        return [round_fields(item, currency_precision, percentage_precision) for item in data]
    if not isinstance(data, dict):
        return data

    rounded = {}
    for key, value in data.items():
        if isinstance(value, float) and key in CURRENCY_FIELDS:
            rounded[key] = round(value, currency_precision)
        elif isinstance(value, float) and key in PERCENTAGE_FIELDS:
            rounded[key] = round(value, percentage_precision)
        else:
            rounded[key] = round_fields(value, currency_precision, percentage_precision)
    return rounded


class ExportService:
    """
    Builds ExportDocuments for the six export formats.

    Example:
        >>> service = ExportService(PerformanceBenchmarks(), HourlyAnalysisConfig())
        >>> document = service.export(result, ExportFormat.ALERTS_ONLY)
        >>> document.filename
        'opsmetrics-alerts-only-03795-00001-2025-06-12.json'
    """

    def __init__(
        self,
        benchmarks: PerformanceBenchmarks,
        hourly_config: HourlyAnalysisConfig,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Args:
            benchmarks: Benchmark profiles for benchmark comparisons
            hourly_config: Rounding precision for the hourly breakdown
            clock: Source of the export timestamp
        """
        self.benchmarks = benchmarks
        self.hourly_config = hourly_config
        self.clock = clock
        self.logger = structlog.get_logger()

        self._builders = {
            ExportFormat.COMPREHENSIVE: self._comprehensive,
            ExportFormat.EXECUTIVE_SUMMARY: self._executive_summary,
            ExportFormat.ALERTS_ONLY: self._alerts_only,
            ExportFormat.CHANNEL_COMPARISON: self._channel_comparison,
            ExportFormat.PLATFORM_COMPARISON: self._platform_comparison,
            ExportFormat.HOURLY_BREAKDOWN: self._hourly_breakdown,
        }

    def export(self, result: Optional[ProcessedResult], export_format: ExportFormat) -> ExportDocument:
        """
        Build one export document.

        Args:
            result: Current processed result
            export_format: Requested format

        Returns:
            ExportDocument

        Raises:
            ValueError: If there is no result to export
        """
        if result is None:
            raise ValueError("No data available for export")

        export_format = ExportFormat(export_format)
        export_date = self.clock()
        data = self._builders[export_format](result)
        slug = export_format.value.replace("_", "-")

        self.logger.info(
            "export_generated",
            format=export_format.value,
            store_id=result.store_id,
            business_date=result.business_date,
        )

        return ExportDocument(
            format=export_format,
            filename=f"opsmetrics-{slug}-{result.store_id}-{result.business_date}.json",
            export_date=export_date,
            store=result.store_id,
            date=result.business_date,
            data=data,
        )

    # =========================================================================
    # Formats
    # =========================================================================

    def _comprehensive(self, result: ProcessedResult) -> dict[str, Any]:
        return {
            "summary": _dump(result.overall_summary),
            "platform_ratings": _dump(result.platform_ratings),
            "store_operations": _dump(result.store_operations),
            "hourly_sales": _dump(result.hourly_sales),
            "alert_summary": _dump(summarize_alerts(result.all_alerts)),
            "benchmark_comparison": self._benchmark_comparison(result),
        }

    def _executive_summary(self, result: ProcessedResult) -> dict[str, Any]:
        operations = result.store_operations.data
        platform = result.platform_ratings.data
        hourly = result.hourly_sales.data

        key_figures: dict[str, Any] = {}
        if operations is not None:
            daily = operations.daily
            key_figures.update({
                "total_sales": daily.financial.total_sales,
                "labor_cost_percentage": daily.financial.labor_cost_percentage,
                "customer_service_score": daily.quality.customer_service_score,
                "top_channel": daily.sales_channels.top_channel.value,
                "digital_adoption_rate": daily.sales_channels.digital_adoption_rate,
            })
        if platform is not None:
            key_figures.update({
                "average_platform_rating": platform.summary.average_rating,
                "best_platform": platform.summary.best_platform.value,
                "attention_required": platform.summary.attention_required.value,
            })
        if hourly is not None:
            key_figures["peak_sales_hour"] = hourly.summary.peak_sales_hour

        comparison = self._benchmark_comparison(result)
        return {
            "summary": _dump(result.overall_summary),
            "key_figures": key_figures,
            "critical_alerts": [
                _dump(a) for a in result.all_alerts if a.severity in EXECUTIVE_ALERT_SEVERITIES
            ],
            "alert_summary": _dump(summarize_alerts(result.all_alerts)),
            "benchmark_score": comparison["overall_score"] if comparison else None,
        }

    def _alerts_only(self, result: ProcessedResult) -> dict[str, Any]:
        return {
            "platform_alerts": [_dump(a) for a in result.platform_ratings.alerts],
            "operational_alerts": [_dump(a) for a in result.store_operations.alerts],
            "summary": _dump(summarize_alerts(result.all_alerts)),
        }

    def _channel_comparison(self, result: ProcessedResult) -> dict[str, Any]:
        operations = result.store_operations.data
        hourly = result.hourly_sales.data
        return {
            "store_channels": _dump(operations.daily.sales_channels) if operations else None,
            "weekly_store_channels": (
                _dump(operations.weekly.sales_channels)
                if operations and operations.weekly else None
            ),
            "hourly_channels": _dump(hourly.summary.channel_breakdown) if hourly else None,
        }

    def _platform_comparison(self, result: ProcessedResult) -> dict[str, Any]:
        platform = result.platform_ratings.data
        if platform is None:
            return {"ranking": [], "comparison": None, "platforms": {}, "summary": None}

        comparison = None
        if len(platform.platforms) >= 2:
            comparison = _dump(compare_platforms(platform))

        return {
            "ranking": [_dump(r) for r in rank_platforms(platform)],
            "comparison": comparison,
            "platforms": {p.value: _dump(m) for p, m in platform.platforms.items()},
            "summary": _dump(platform.summary),
        }

    def _hourly_breakdown(self, result: ProcessedResult) -> dict[str, Any]:
        hourly = result.hourly_sales.data
        if hourly is None:
            return {
                "hours": [],
                "periods": [],
                "trends": [],
                "summary": None,
                "validation": _dump(result.hourly_sales.validation),
            }

        data = {
            "hours": [_dump(h) for h in hourly.hours],
            "periods": [_dump(p) for p in hourly.periods],
            "trends": [_dump(t) for t in hourly.trends],
            "summary": _dump(hourly.summary),
            "validation": _dump(hourly.validation),
        }
        return round_fields(
            data,
            self.hourly_config.currency_precision,
            self.hourly_config.percentage_precision,
        )

    def _benchmark_comparison(self, result: ProcessedResult) -> Optional[dict[str, Any]]:
        operations = result.store_operations.data
        if operations is None:
            return None
        return _dump(compare_benchmarks(operations.daily, self.benchmarks))
