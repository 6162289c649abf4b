"""
Exports router: on-demand export documents.
"""

from fastapi import APIRouter, Depends, HTTPException

from opsmetrics.engine import get_orchestrator
from opsmetrics.engine.exports import ExportService
from opsmetrics.engine.orchestrator import AnalysisOrchestrator
from opsmetrics.models.enums import ExportFormat
from opsmetrics.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/{export_format}")
async def export_result(
    export_format: ExportFormat,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Build one export document from the current result."""
    service = ExportService(orchestrator.benchmarks, orchestrator.config.hourly)
    try:
        document = service.export(orchestrator.result, export_format)
    except ValueError as e:
        logger.warning("export_unavailable", export_format=export_format.value, error=str(e))
        raise HTTPException(status_code=404, detail=str(e))

    logger.info("export_generated", export_format=export_format.value, filename=document.filename)
    return {"success": True, "data": document.model_dump(mode="json")}
