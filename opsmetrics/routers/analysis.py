"""
Analysis router: envelope ingest, lifecycle, configuration and alerts.

Wired to the process-wide AnalysisOrchestrator.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, ValidationError

from opsmetrics.engine import get_orchestrator
from opsmetrics.engine.orchestrator import AnalysisOrchestrator, format_validation_errors
from opsmetrics.models.enums import AnalysisDomain
from opsmetrics.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class FetchFailure(BaseModel):
    """Upstream fetch failure reported by the data collaborator."""

    reason: str


def _state_response(orchestrator: AnalysisOrchestrator) -> dict:
    return {"success": True, "data": orchestrator.state.model_dump(mode="json")}


@router.post("/fetch")
async def begin_fetch(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Mark a fetch as in flight (status becomes loading)."""
    orchestrator.begin_fetch()
    return _state_response(orchestrator)


@router.post("/fetch/failure")
async def reject_fetch(
    failure: FetchFailure,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Record a failed fetch; clears all processed data."""
    orchestrator.reject_fetch(failure.reason)
    return _state_response(orchestrator)


@router.post("/envelope")
async def accept_envelope(
    envelope: dict[str, Any] = Body(...),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """
    Ingest a raw response envelope and process it.

    Validation failures are reported in the returned state, not as an HTTP
    error: the envelope was received, it just could not be analyzed.
    """
    state = orchestrator.accept_envelope(envelope)
    logger.info("envelope_ingested", status=state.status.value)
    return _state_response(orchestrator)


@router.get("/state")
async def get_state(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return _state_response(orchestrator)


@router.get("/result")
async def get_result(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Current processed result."""
    result = orchestrator.result
    if result is None:
        raise HTTPException(status_code=404, detail="No processed result available")
    return {"success": True, "data": result.model_dump(mode="json")}


@router.get("/config")
async def get_config(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return {"success": True, "data": orchestrator.config.model_dump(mode="json")}


@router.patch("/config")
async def update_config(
    overrides: dict[str, Any] = Body(...),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Apply a partial nested configuration update and reprocess."""
    try:
        orchestrator.update_config(overrides)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=format_validation_errors(e))
    return _state_response(orchestrator)


@router.get("/benchmarks")
async def get_benchmarks(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return {"success": True, "data": orchestrator.benchmarks.model_dump(mode="json")}


@router.put("/benchmarks")
async def update_benchmarks(
    benchmarks: dict[str, Any] = Body(...),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Replace the benchmark profiles and reprocess."""
    try:
        orchestrator.update_benchmarks(benchmarks)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=format_validation_errors(e))
    return _state_response(orchestrator)


@router.post("/reprocess")
async def reprocess(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    orchestrator.reprocess()
    return _state_response(orchestrator)


@router.get("/alerts")
async def list_alerts(
    domain: Optional[AnalysisDomain] = None,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Current alerts, optionally for one domain."""
    result = orchestrator.result
    if result is None:
        return {"success": True, "data": [], "count": 0}
    alerts = result.domain(domain).alerts if domain else result.all_alerts
    return {
        "success": True,
        "data": [a.model_dump(mode="json") for a in alerts],
        "count": len(alerts),
    }


@router.delete("/alerts/{domain}/{index}")
async def dismiss_alert(
    domain: AnalysisDomain,
    index: int,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    orchestrator.dismiss_alert(domain, index)
    return _state_response(orchestrator)


@router.delete("/alerts")
async def clear_alerts(
    domain: Optional[AnalysisDomain] = None,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    orchestrator.clear_alerts(domain)
    return _state_response(orchestrator)


@router.post("/reset")
async def reset(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    orchestrator.reset()
    return _state_response(orchestrator)


@router.post("/clear-error")
async def clear_error(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    orchestrator.clear_error()
    return _state_response(orchestrator)
