"""
Views router: computed read-only views over the current result.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from opsmetrics.engine import get_orchestrator
from opsmetrics.engine.orchestrator import AnalysisOrchestrator
from opsmetrics.engine.views import (
    analyze_alert_impact,
    analyze_labor_efficiency,
    analyze_waste,
    assess_data_completeness,
    assess_hourly_quality,
    assess_platform_quality,
    compare_benchmarks,
    compare_platforms,
    filter_hours,
    filter_platforms,
    optimize_expenses,
    peak_sales_info,
    period_performance,
    rank_channels,
    rank_platforms,
    recommend_for_platform,
    summarize_alerts,
)
from opsmetrics.models.enums import DeliveryPlatform, HourlySort
from opsmetrics.models.hourly import HourlyFilter, ProcessedHourlySales
from opsmetrics.models.operations import ProcessedStoreOperations
from opsmetrics.models.platform import PlatformFilter, ProcessedPlatformRatings
from opsmetrics.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _platform_data(orchestrator: AnalysisOrchestrator) -> ProcessedPlatformRatings:
    result = orchestrator.result
    if result is None or result.platform_ratings.data is None:
        raise HTTPException(status_code=404, detail="No platform ratings available")
    return result.platform_ratings.data


def _operations_data(orchestrator: AnalysisOrchestrator) -> ProcessedStoreOperations:
    result = orchestrator.result
    if result is None or result.store_operations.data is None:
        raise HTTPException(status_code=404, detail="No store operations available")
    return result.store_operations.data


def _hourly_data(orchestrator: AnalysisOrchestrator) -> ProcessedHourlySales:
    result = orchestrator.result
    if result is None or result.hourly_sales.data is None:
        raise HTTPException(status_code=404, detail="No hourly sales available")
    return result.hourly_sales.data


@router.get("/platforms")
async def get_platforms(
    platforms: Optional[list[DeliveryPlatform]] = Query(default=None),
    min_rating: Optional[float] = None,
    off_track_only: bool = False,
    critical_only: bool = False,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Platform metrics narrowed by the filter."""
    platform_filter = PlatformFilter(
        platforms=platforms,
        min_rating=min_rating,
        off_track_only=off_track_only,
        critical_only=critical_only,
    )
    filtered = filter_platforms(_platform_data(orchestrator), platform_filter)
    return {
        "success": True,
        "data": {p.value: m.model_dump(mode="json") for p, m in filtered.items()},
    }


@router.get("/platforms/ranking")
async def get_platform_ranking(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    ranking = rank_platforms(_platform_data(orchestrator))
    return {"success": True, "data": [r.model_dump(mode="json") for r in ranking]}


@router.get("/platforms/comparison")
async def get_platform_comparison(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    try:
        comparison = compare_platforms(_platform_data(orchestrator))
    except ValueError as e:
        logger.warning("platform_comparison_unavailable", error=str(e))
        raise HTTPException(status_code=422, detail=str(e))
    return {"success": True, "data": comparison.model_dump(mode="json")}


@router.get("/platforms/{platform}/recommendations")
async def get_platform_recommendations(
    platform: DeliveryPlatform,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    try:
        recommendations = recommend_for_platform(_platform_data(orchestrator), platform)
    except ValueError as e:
        logger.warning("platform_recommendations_unavailable", platform=platform.value)
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "data": recommendations.model_dump(mode="json")}


@router.get("/alerts/summary")
async def get_alert_summary(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    result = orchestrator.result
    alerts = result.all_alerts if result is not None else []
    return {"success": True, "data": summarize_alerts(alerts).model_dump(mode="json")}


@router.get("/benchmarks")
async def get_benchmark_comparison(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    operations = _operations_data(orchestrator)
    comparison = compare_benchmarks(operations.daily, orchestrator.benchmarks)
    return {"success": True, "data": comparison.model_dump(mode="json")}


@router.get("/projection")
async def get_projection(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Sales projection; requires a weekly record in the envelope."""
    operations = _operations_data(orchestrator)
    if operations.projection is None:
        raise HTTPException(status_code=404, detail="No weekly data for projection")
    return {"success": True, "data": operations.projection.model_dump(mode="json")}


@router.get("/hours")
async def get_hours(
    min_sales: Optional[float] = None,
    max_sales: Optional[float] = None,
    min_orders: Optional[float] = None,
    max_orders: Optional[float] = None,
    include_hours: Optional[list[int]] = Query(default=None),
    exclude_hours: Optional[list[int]] = Query(default=None),
    active_only: bool = False,
    sort: HourlySort = HourlySort.HOUR_ASC,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Processed hours after the configured base rules and the given filter."""
    hourly_filter = HourlyFilter(
        min_sales=min_sales,
        max_sales=max_sales,
        min_orders=min_orders,
        max_orders=max_orders,
        include_hours=include_hours,
        exclude_hours=exclude_hours,
        active_only=active_only,
        sort=sort,
    )
    hours = filter_hours(_hourly_data(orchestrator), hourly_filter, orchestrator.config.hourly)
    return {
        "success": True,
        "data": [h.model_dump(mode="json") for h in hours],
        "count": len(hours),
    }


@router.get("/hours/peak")
async def get_peak_hour(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    info = peak_sales_info(_hourly_data(orchestrator))
    return {"success": True, "data": info.model_dump(mode="json")}


@router.get("/hours/performance")
async def get_period_performance(
    start_hour: int = Query(..., ge=0, le=23),
    end_hour: int = Query(..., ge=0, le=23),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Sales over the inclusive hour range start_hour..end_hour."""
    try:
        performance = period_performance(_hourly_data(orchestrator), start_hour, end_hour)
    except ValueError as e:
        logger.warning("period_performance_rejected", start_hour=start_hour, end_hour=end_hour)
        raise HTTPException(status_code=422, detail=str(e))
    return {"success": True, "data": performance.model_dump(mode="json")}


@router.get("/hours/quality")
async def get_hourly_quality(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Hourly data quality; a missing or failed hourly domain scores Critical."""
    result = orchestrator.result
    processed = result.hourly_sales.data if result is not None else None
    return {"success": True, "data": assess_hourly_quality(processed).model_dump(mode="json")}


@router.get("/platforms/quality")
async def get_platform_quality(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    result = orchestrator.result
    if result is None:
        quality = assess_platform_quality(None)
    else:
        quality = assess_platform_quality(
            result.platform_ratings.data, result.platform_ratings.alerts
        )
    return {"success": True, "data": quality.model_dump(mode="json")}


@router.get("/channels/ranking")
async def get_channel_ranking(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    ranking = rank_channels(_operations_data(orchestrator).daily.sales_channels)
    return {"success": True, "data": [r.model_dump(mode="json") for r in ranking]}


@router.get("/operations/completeness")
async def get_data_completeness(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    result = orchestrator.result
    operations = result.store_operations.data if result is not None else None
    completeness = assess_data_completeness(operations.daily if operations is not None else None)
    return {"success": True, "data": completeness.model_dump(mode="json")}


@router.get("/operations/waste")
async def get_waste_analysis(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    analysis = analyze_waste(_operations_data(orchestrator))
    return {"success": True, "data": analysis.model_dump(mode="json")}


@router.get("/operations/labor-efficiency")
async def get_labor_efficiency(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    analysis = analyze_labor_efficiency(_operations_data(orchestrator).daily)
    return {"success": True, "data": analysis.model_dump(mode="json")}


@router.get("/operations/cost-savings")
async def get_cost_savings(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Savings opportunities with totals, quick wins and ROI."""
    optimization = optimize_expenses(_operations_data(orchestrator).daily)
    logger.info(
        "cost_savings_computed",
        opportunities=len(optimization.opportunities),
        total_savings=round(optimization.total_savings, 2),
    )
    return {"success": True, "data": optimization.model_dump(mode="json")}


@router.get("/alerts/impact")
async def get_alert_impact(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Impact of the store-operations alerts by category."""
    result = orchestrator.result
    alerts = result.store_operations.alerts if result is not None else []
    return {"success": True, "data": analyze_alert_impact(alerts).model_dump(mode="json")}
