"""
Analysis Orchestrator: lifecycle state machine around the domain processors.

    idle -> loading -> succeeded | failed

The orchestrator holds the most recently accepted raw envelope and the
current configuration. Accepting an envelope, or changing configuration or
benchmarks while an envelope is held, (re)processes it and swaps in a new
immutable ProcessedResult.

Each domain is processed independently: a missing or unusable domain record
fails only that domain. An envelope that does not validate, an explicit fetch
failure, or an envelope in which no domain could be processed fails the whole
state and clears all processed data. A record that does not validate fails
only its own domain.

Writers are serialized by a lock; readers receive immutable snapshots.

Version: orchestrator_v1
"""

import threading
from datetime import datetime, timezone
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from opsmetrics.engine.alerts import AlertAggregator
from opsmetrics.engine.processors.hourly_sales import HourlyDataError, HourlySalesProcessor
from opsmetrics.engine.processors.platform_ratings import PlatformRatingsProcessor
from opsmetrics.engine.processors.store_operations import StoreOperationsProcessor
from opsmetrics.models.alerts import Alert
from opsmetrics.models.analysis_config import AnalysisConfig, PerformanceBenchmarks
from opsmetrics.models.enums import AlertSeverity, AnalysisDomain, ProcessingStatus
from opsmetrics.models.envelope import (
    HourlySalesRaw,
    PlatformRatingsRaw,
    RawResponseEnvelope,
    StoreOperationsRaw,
)
from opsmetrics.models.results import (
    EngineState,
    HourlySalesResult,
    OverallSummary,
    PlatformRatingsResult,
    ProcessedResult,
    StoreOperationsResult,
)
from opsmetrics.utils.logging import analysis_scope

logger = structlog.get_logger()

DOMAIN_LABELS = {
    AnalysisDomain.PLATFORM_RATINGS: "Platform ratings",
    AnalysisDomain.STORE_OPERATIONS: "Store operations",
    AnalysisDomain.HOURLY_SALES: "Hourly sales",
}

NO_DOMAINS_PROCESSED = "No analysis domain could be processed"


def missing_domain_message(domain: AnalysisDomain) -> str:
    return f"{DOMAIN_LABELS[domain]} data not found in API response"


def format_validation_errors(exc: ValidationError, root: str = "") -> list[str]:
    """One "location: message" line per pydantic error, locations under root."""
    messages = []
    for error in exc.errors():
        parts = ([root] if root else []) + [str(part) for part in error.get("loc", ())]
        location = ".".join(parts) or "envelope"
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    return messages


# ============================================================================
# Pure pipeline
# ============================================================================


def analyze_envelope(
    envelope: RawResponseEnvelope,
    config: AnalysisConfig,
    aggregator: Optional[AlertAggregator] = None,
) -> ProcessedResult:
    """
    Run every domain processor over one envelope.

    Pure in (envelope, config): the same inputs always produce an equal
    ProcessedResult.
    """
    aggregator = aggregator or AlertAggregator()

    with analysis_scope(envelope.filtering.store, envelope.filtering.date):
        platform = _platform_result(envelope, config, aggregator)
        operations = _operations_result(envelope, config, aggregator)
        hourly = _hourly_result(envelope)

    return ProcessedResult(
        store_id=envelope.filtering.store,
        business_date=envelope.filtering.date,
        lookback_start=envelope.filtering.lookback_start,
        lookback_end=envelope.filtering.lookback_end,
        platform_ratings=platform,
        store_operations=operations,
        hourly_sales=hourly,
        overall_summary=summarize_result(platform, operations, hourly),
    )


def _platform_result(
    envelope: RawResponseEnvelope, config: AnalysisConfig, aggregator: AlertAggregator
) -> PlatformRatingsResult:
    payload = envelope.reports.daily.platform_ratings
    if payload is None:
        return _failed(PlatformRatingsResult, missing_domain_message(AnalysisDomain.PLATFORM_RATINGS))

    try:
        raw = _validate_record(PlatformRatingsRaw, payload)
        data, candidates = PlatformRatingsProcessor(config.platform).process(raw)
    except ValidationError as e:
        return _invalid(PlatformRatingsResult, e, "dailyDSQRData")
    except ValueError as e:
        return _failed(PlatformRatingsResult, str(e))

    settings = config.platform.alert_settings
    alerts = aggregator.aggregate(
        candidates,
        max_alerts=settings.max_alerts,
        monitored_platforms=settings.monitored_platforms,
        include_priorities=settings.include_priorities,
    )
    return PlatformRatingsResult(status=ProcessingStatus.SUCCEEDED, data=data, alerts=alerts)


def _operations_result(
    envelope: RawResponseEnvelope, config: AnalysisConfig, aggregator: AlertAggregator
) -> StoreOperationsResult:
    payload = envelope.reports.daily.store_operations
    if payload is None:
        return _failed(StoreOperationsResult, missing_domain_message(AnalysisDomain.STORE_OPERATIONS))

    try:
        daily = _validate_record(StoreOperationsRaw, payload)
    except ValidationError as e:
        return _invalid(StoreOperationsResult, e, "dailyDSPRData")

    weekly_payload = envelope.reports.weekly.store_operations
    try:
        weekly = None
        if weekly_payload is not None:
            weekly = _validate_record(StoreOperationsRaw, weekly_payload)
    except ValidationError as e:
        return _invalid(StoreOperationsResult, e, "DSPRData")

    try:
        data, candidates = StoreOperationsProcessor(config.operations).process(daily, weekly)
    except ValueError as e:
        return _failed(StoreOperationsResult, str(e))

    settings = config.operations.alert_settings
    alerts = aggregator.aggregate(
        candidates,
        max_alerts=settings.max_alerts,
        monitored_categories=settings.monitored_categories,
    )
    return StoreOperationsResult(status=ProcessingStatus.SUCCEEDED, data=data, alerts=alerts)


def _hourly_result(envelope: RawResponseEnvelope) -> HourlySalesResult:
    payload = envelope.reports.daily.hourly_sales
    if payload is None:
        return _failed(HourlySalesResult, missing_domain_message(AnalysisDomain.HOURLY_SALES))

    try:
        raw = _validate_record(HourlySalesRaw, payload)
        data = HourlySalesProcessor().process(raw)
    except ValidationError as e:
        return _invalid(HourlySalesResult, e, "dailyHourlySales")
    except HourlyDataError as e:
        return HourlySalesResult(
            status=ProcessingStatus.FAILED,
            error=str(e),
            errors=list(e.validation.errors),
            validation=e.validation,
        )

    return HourlySalesResult(
        status=ProcessingStatus.SUCCEEDED,
        data=data,
        validation=data.validation,
    )


def _failed(result_type, message: str):
    return result_type(status=ProcessingStatus.FAILED, error=message, errors=[message])


def _validate_record(record_type, payload: Any):
    if isinstance(payload, record_type):
        return payload
    return record_type.model_validate(payload)


def _invalid(result_type, exc: ValidationError, record_name: str):
    """A domain whose raw record does not validate fails on its own."""
    messages = format_validation_errors(exc, root=record_name)
    logger.warning("domain_record_rejected", record=record_name, error_count=len(messages))
    return result_type(
        status=ProcessingStatus.FAILED,
        error=f"Invalid {record_name} record",
        errors=messages,
    )


def summarize_result(
    platform: PlatformRatingsResult,
    operations: StoreOperationsResult,
    hourly: HourlySalesResult,
) -> OverallSummary:
    """Cross-domain headline figures from the three domain results."""
    results = [platform, operations, hourly]
    alerts: list[Alert] = [a for r in results for a in r.alerts]

    by_severity = {severity: 0 for severity in AlertSeverity}
    for alert in alerts:
        by_severity[alert.severity] += 1

    return OverallSummary(
        domains_succeeded=[r.domain for r in results if r.succeeded],
        domains_failed=[r.domain for r in results if not r.succeeded],
        platform_grade=platform.data.summary.performance_grade if platform.data else None,
        platform_performance=platform.data.summary.overall_performance if platform.data else None,
        operational_grade=operations.data.overall_grade if operations.data else None,
        total_daily_sales=hourly.data.summary.total_daily_sales if hourly.data else None,
        peak_sales_hour=hourly.data.summary.peak_sales_hour if hourly.data else None,
        total_alerts=len(alerts),
        alerts_by_severity=by_severity,
    )


# ============================================================================
# Orchestrator
# ============================================================================


class AnalysisOrchestrator:
    """
    Owns the engine state and serializes every transition.

    Example:
        >>> orchestrator = AnalysisOrchestrator()
        >>> orchestrator.begin_fetch()
        >>> state = orchestrator.accept_envelope(response_json)
        >>> state.status
        <ProcessingStatus.SUCCEEDED: 'succeeded'>
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        benchmarks: Optional[PerformanceBenchmarks] = None,
    ):
        """
        Args:
            config: Initial analysis configuration (defaults apply when None)
            benchmarks: Initial benchmark profiles (defaults apply when None)
        """
        self._lock = threading.Lock()
        self._envelope: Optional[RawResponseEnvelope] = None
        self._state = EngineState(
            config=config or AnalysisConfig(),
            benchmarks=benchmarks or PerformanceBenchmarks(),
        )
        self.aggregator = AlertAggregator()
        self.logger = structlog.get_logger()

    # =========================================================================
    # Readers
    # =========================================================================

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def result(self) -> Optional[ProcessedResult]:
        return self._state.result

    @property
    def config(self) -> AnalysisConfig:
        return self._state.config

    @property
    def benchmarks(self) -> PerformanceBenchmarks:
        return self._state.benchmarks

    # =========================================================================
    # Fetch lifecycle
    # =========================================================================

    def begin_fetch(self) -> EngineState:
        """A fetch for a new envelope is in flight."""
        with self._lock:
            return self._transition(ProcessingStatus.LOADING, error=None, errors=[])

    def accept_envelope(self, envelope: Union[RawResponseEnvelope, dict[str, Any]]) -> EngineState:
        """
        Validate, hold and process a newly fetched envelope.

        Never raises: a payload that does not validate leaves the state failed
        with one message per validation error and no processed data.
        """
        with self._lock:
            self._transition(ProcessingStatus.LOADING, error=None, errors=[])
            try:
                if isinstance(envelope, RawResponseEnvelope):
                    validated = envelope
                else:
                    validated = RawResponseEnvelope.model_validate(envelope)
            except ValidationError as e:
                messages = format_validation_errors(e)
                self.logger.warning("envelope_rejected", error_count=len(messages))
                return self._fail("Invalid API response", messages)

            if not validated.filtering.has_valid_keys():
                self.logger.warning(
                    "envelope_filter_keys_unexpected",
                    store=validated.filtering.store,
                    date=validated.filtering.date,
                )

            self._envelope = validated
            return self._process_held()

    def reject_fetch(self, reason: str) -> EngineState:
        """The fetch failed upstream; drop everything held."""
        with self._lock:
            self.logger.warning("fetch_rejected", reason=reason)
            return self._fail(reason, [reason])

    # =========================================================================
    # Configuration
    # =========================================================================

    def update_config(self, config: Union[AnalysisConfig, dict[str, Any]]) -> EngineState:
        """
        Replace the configuration and reprocess the held envelope.

        Args:
            config: Full AnalysisConfig, or a nested dict of partial overrides

        Raises:
            pydantic.ValidationError: If the overrides do not form a valid config
        """
        with self._lock:
            if not isinstance(config, AnalysisConfig):
                config = self._state.config.merged(config)
            self._state = self._state.model_copy(update={"config": config})
            self.logger.info("analysis_config_updated")
            return self._process_held()

    def update_benchmarks(
        self, benchmarks: Union[PerformanceBenchmarks, dict[str, Any]]
    ) -> EngineState:
        """Replace the benchmark profiles and reprocess the held envelope."""
        with self._lock:
            if not isinstance(benchmarks, PerformanceBenchmarks):
                benchmarks = PerformanceBenchmarks.model_validate(benchmarks)
            self._state = self._state.model_copy(update={"benchmarks": benchmarks})
            self.logger.info("benchmarks_updated")
            return self._process_held()

    def reprocess(self) -> EngineState:
        """Process the held envelope again; no-op without one."""
        with self._lock:
            return self._process_held()

    # =========================================================================
    # Alerts
    # =========================================================================

    def dismiss_alert(self, domain: AnalysisDomain, index: int) -> EngineState:
        """Remove one alert from a domain's list; an out-of-range index is ignored."""
        domain = AnalysisDomain(domain)
        with self._lock:
            result = self._state.result
            if result is None:
                return self._state
            alerts = list(result.domain(domain).alerts)
            if not 0 <= index < len(alerts):
                return self._state
            removed = alerts.pop(index)
            self.logger.info(
                "alert_dismissed", domain=domain.value, metric=removed.metric, index=index
            )
            return self._replace_alerts({domain: alerts})

    def clear_alerts(self, domain: Optional[AnalysisDomain] = None) -> EngineState:
        """Drop the alerts of one domain, or of every domain when None."""
        domain = AnalysisDomain(domain) if domain is not None else None
        with self._lock:
            if self._state.result is None:
                return self._state
            domains = [domain] if domain is not None else list(AnalysisDomain)
            self.logger.info("alerts_cleared", domains=[d.value for d in domains])
            return self._replace_alerts({d: [] for d in domains})

    # =========================================================================
    # Reset
    # =========================================================================

    def reset(self) -> EngineState:
        """Back to idle with no envelope or result; configuration is kept."""
        with self._lock:
            self._envelope = None
            self._state = self._state.model_copy(update={"result": None, "has_envelope": False})
            return self._transition(ProcessingStatus.IDLE, error=None, errors=[])

    def clear_error(self) -> EngineState:
        """Acknowledge a failure: failed returns to idle."""
        with self._lock:
            if self._state.status != ProcessingStatus.FAILED:
                return self._state
            return self._transition(ProcessingStatus.IDLE, error=None, errors=[])

    # =========================================================================
    # Internals (lock held)
    # =========================================================================

    def _process_held(self) -> EngineState:
        if self._envelope is None:
            return self._state

        self._transition(ProcessingStatus.LOADING, error=None, errors=[])
        try:
            result = analyze_envelope(self._envelope, self._state.config, self.aggregator)
        except Exception as e:
            self.logger.exception("envelope_processing_failed", error=str(e))
            return self._fail_processing(f"Processing failed: {e}", [str(e)])

        summary = result.overall_summary
        if not summary.domains_succeeded:
            errors = [
                message
                for domain in AnalysisDomain
                for message in result.domain(domain).errors
            ]
            return self._fail_processing(NO_DOMAINS_PROCESSED, errors)

        self._state = self._state.model_copy(update={
            "result": result,
            "has_envelope": True,
            "last_processed_at": datetime.now(timezone.utc),
        })
        self.logger.info(
            "envelope_processed",
            store_id=result.store_id,
            business_date=result.business_date,
            domains_succeeded=[d.value for d in summary.domains_succeeded],
            domains_failed=[d.value for d in summary.domains_failed],
            total_alerts=summary.total_alerts,
        )
        return self._transition(ProcessingStatus.SUCCEEDED)

    def _fail(self, reason: str, errors: list[str]) -> EngineState:
        self._envelope = None
        self._state = self._state.model_copy(update={"result": None, "has_envelope": False})
        return self._transition(ProcessingStatus.FAILED, error=reason, errors=errors)

    def _fail_processing(self, reason: str, errors: list[str]) -> EngineState:
        # The held envelope stays so a corrected configuration can recover
        self._state = self._state.model_copy(update={"result": None, "has_envelope": True})
        return self._transition(ProcessingStatus.FAILED, error=reason, errors=errors)

    def _transition(self, status: ProcessingStatus, **updates) -> EngineState:
        previous = self._state.status
        self._state = self._state.model_copy(update={"status": status, **updates})
        if previous != status:
            self.logger.info(
                "orchestrator_status_changed",
                from_status=previous.value,
                to_status=status.value,
                error=self._state.error,
            )
        return self._state

    def _replace_alerts(self, alerts_by_domain: dict[AnalysisDomain, list[Alert]]) -> EngineState:
        result = self._state.result
        updated = {
            domain.value: result.domain(domain).model_copy(update={"alerts": alerts})
            for domain, alerts in alerts_by_domain.items()
        }
        result = result.model_copy(update=updated)
        result = result.model_copy(update={
            "overall_summary": summarize_result(
                result.platform_ratings, result.store_operations, result.hourly_sales
            )
        })
        self._state = self._state.model_copy(update={"result": result})
        return self._state
