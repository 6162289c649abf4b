"""
Pytest configuration and shared fixtures for the opsmetrics test suite.

Factories build raw upstream payloads (verbatim field names) so tests can
override one field at a time and feed the result through validation exactly
as the HTTP service would.
"""

import os
from typing import Any, Optional

import pytest

# Set testing environment BEFORE importing app
os.environ["TESTING"] = "true"
os.environ.setdefault("LOG_FORMAT", "console")

from opsmetrics.engine.orchestrator import AnalysisOrchestrator
from opsmetrics.models.analysis_config import AnalysisConfig, OperationsAnalysisConfig, PlatformAnalysisConfig
from opsmetrics.models.envelope import (
    HourlySalesRaw,
    PlatformRatingsRaw,
    RawResponseEnvelope,
    StoreOperationsRaw,
)

STORE_ID = "03795-00001"
BUSINESS_DATE = "2025-06-12"


# ---------------------------------------------------------------------------
# Raw payload factories
# ---------------------------------------------------------------------------


def make_operations_raw(**overrides: Any) -> dict[str, Any]:
    """A healthy daily store-operations record that raises no alerts."""
    record = {
        "labor": 0.29,
        "waste_gateway": 20.0,
        "over_short": 2.0,
        "Refunded_order_Qty": 1,
        "Total_Cash_Sales": 400.0,
        "Total_Sales": 2850.0,
        "Waste_Alta": 10.0,
        "Modified_Order_Qty": 3,
        "Total_TIPS": 85.0,
        "Customer_count": 120,
        "DoorDash_Sales": 300.0,
        "UberEats_Sales": 200.0,
        "GrubHub_Sales": 100.0,
        "Phone": 150.0,
        "Call_Center_Agent": 50.0,
        "Website": 600.0,
        "Mobile": 650.0,
        "Digital_Sales_Percent": 0.45,
        "Total_Portal_Eligible_Transactions": 90,
        "Put_into_Portal_Percent": 0.97,
        "In_Portal_on_Time_Percent": 0.95,
        "Drive_Thru_Sales": 300.0,
        "Upselling": None,
        "Cash_Sales_Vs_Deposite_Difference": 0.0,
        "Avrage_ticket": 23.75,
        "Customer_count_percent": 1.02,
        "Customer_Service": 0.96,
    }
    record.update(overrides)
    return record


def make_weekly_operations_raw(**overrides: Any) -> dict[str, Any]:
    """Weekly aggregate whose daily-equivalent sales equal 2800."""
    record = make_operations_raw(
        Total_Sales=19600.0,
        Customer_count=840,
        waste_gateway=140.0,
        Waste_Alta=70.0,
        labor=0.30,
        Digital_Sales_Percent=0.44,
    )
    record.update(overrides)
    return record


ALL_TRACKING_FIELDS = [
    "DD_NAOT_Ratings_Average_Rating",
    "DD_NAOT_Cancellations_Sales_Lost",
    "DD_NAOT_Missing_or_Incorrect_Error_Charges",
    "DD_NAOT_Avoidable_Wait_M_Sec",
    "UE_NAOT_Customer_reviews_overview",
    "UE_NAOT_Cost_of_Refunds",
    "UE_NAOT_Unfulfilled_order_rate",
    "UE_NAOT_Time_unavailable_during_open_hours_hh_mm",
    "GH_NAOT_Rating",
    "GH_NAOT_Food_was_good",
    "GH_NAOT_Delivery_was_on_time",
    "GH_NAOT_Order_was_accurate",
]


def make_platform_raw(
    scores: Optional[dict[str, Any]] = None,
    tracking: Optional[dict[str, Any]] = None,
    default_status: Optional[str] = "on_track",
) -> dict[str, Any]:
    """Platform-ratings record; every tracked KPI gets default_status unless overridden."""
    score = {
        "DD_Most_Loved_Restaurant": "Yes",
        "DD_Optimization_Score": "High",
        "DD_Ratings_Average_Rating": 4.7,
        "DD_Cancellations_Sales_Lost": 12.5,
        "DD_Missing_or_Incorrect_Error_Charges": 4.0,
        "DD_Avoidable_Wait_M_Sec": 1.5,
        "DD_Total_Dasher_Wait_M_Sec": 4.2,
        "DD_Downtime_H_MM": 0.0,
        "DD_Reviews_Responded": 1.0,
        "UE_Customer_reviews_overview": 4.5,
        "UE_Cost_of_Refunds": 8.0,
        "UE_Unfulfilled_order_rate": 0.01,
        "UE_Time_unavailable_during_open_hours_hh_mm": 0.0,
        "UE_Reviews_Responded": 1.0,
        "GH_Rating": 4.4,
        "GH_Food_was_good": 0.9,
        "GH_Delivery_was_on_time": 0.93,
        "GH_Order_was_accurate": 0.92,
    }
    score.update(scores or {})

    is_on_track: dict[str, Any] = {}
    if default_status is not None:
        is_on_track = {field: default_status for field in ALL_TRACKING_FIELDS}
    is_on_track.update(tracking or {})
    return {"score": score, "is_on_track": is_on_track}


def make_hour(total_sales: float = 50.0, order_count: Optional[float] = None) -> dict[str, Any]:
    """One hour split 40/20/20/20 across website, mobile, phone and drive-thru."""
    return {
        "Total_Sales": total_sales,
        "Website": total_sales * 0.4,
        "Mobile": total_sales * 0.2,
        "Phone_Sales": total_sales * 0.2,
        "Drive_Thru": total_sales * 0.2,
        "Call_Center_Agent": 0.0,
        "Order_Count": order_count if order_count is not None else total_sales / 10,
    }


def make_hours(
    sales_by_hour: Optional[dict[int, float]] = None,
    default_sales: float = 50.0,
    count: int = 24,
) -> list[dict[str, Any]]:
    """count hour slots at default_sales, with per-hour overrides."""
    sales_by_hour = sales_by_hour or {}
    return [make_hour(sales_by_hour.get(hour, default_sales)) for hour in range(count)]


def make_hourly_raw(hours: Optional[list[dict[str, Any]]] = None) -> dict[str, Any]:
    return {
        "franchise_store": STORE_ID,
        "business_date": BUSINESS_DATE,
        "hours": hours if hours is not None else make_hours(),
    }


_DEFAULT = object()


def make_envelope(
    operations: Any = _DEFAULT,
    weekly: Any = _DEFAULT,
    platform: Any = _DEFAULT,
    hourly: Any = _DEFAULT,
    store: str = STORE_ID,
    date: str = BUSINESS_DATE,
) -> dict[str, Any]:
    """
    Full raw envelope. Pass None for a domain to omit it from the payload.
    """
    daily: dict[str, Any] = {}
    weekly_reports: dict[str, Any] = {}

    operations = make_operations_raw() if operations is _DEFAULT else operations
    weekly = make_weekly_operations_raw() if weekly is _DEFAULT else weekly
    platform = make_platform_raw() if platform is _DEFAULT else platform
    hourly = make_hourly_raw() if hourly is _DEFAULT else hourly

    if operations is not None:
        daily["dailyDSPRData"] = operations
    if platform is not None:
        daily["dailyDSQRData"] = platform
    if hourly is not None:
        daily["dailyHourlySales"] = hourly
    if weekly is not None:
        weekly_reports["DSPRData"] = weekly

    return {
        "Filtering Values": {
            "date": date,
            "store": store,
            "items": [],
            "week": 24,
            "weekStartDate": "2025-06-09",
            "weekEndDate": "2025-06-15",
            "look back start": "2025-05-13",
            "look back end": "2025-06-11",
            "depositDeliveryUrl": "",
        },
        "reports": {"daily": daily, "weekly": weekly_reports},
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def operations_raw() -> StoreOperationsRaw:
    return StoreOperationsRaw.model_validate(make_operations_raw())


@pytest.fixture
def weekly_raw() -> StoreOperationsRaw:
    return StoreOperationsRaw.model_validate(make_weekly_operations_raw())


@pytest.fixture
def platform_raw() -> PlatformRatingsRaw:
    return PlatformRatingsRaw.model_validate(make_platform_raw())


@pytest.fixture
def hourly_raw() -> HourlySalesRaw:
    return HourlySalesRaw.model_validate(make_hourly_raw())


@pytest.fixture
def envelope() -> RawResponseEnvelope:
    return RawResponseEnvelope.model_validate(make_envelope())


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    return AnalysisConfig()


@pytest.fixture
def platform_config() -> PlatformAnalysisConfig:
    return PlatformAnalysisConfig()


@pytest.fixture
def operations_config() -> OperationsAnalysisConfig:
    return OperationsAnalysisConfig()


@pytest.fixture
def orchestrator() -> AnalysisOrchestrator:
    return AnalysisOrchestrator()
