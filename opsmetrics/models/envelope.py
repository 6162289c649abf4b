"""
Raw response envelope models.

The envelope is the single immutable payload fetched for one store/date. It
bundles three independent raw domain records (platform ratings, store
operations, hourly sales) plus the filtering metadata the report was built
with.

Raw record field names mirror the upstream report payload verbatim
(``Total_Sales``, ``DD_NAOT_Ratings_Average_Rating``, ...) so that fixtures
and captured responses validate without a translation layer. Processed
models in the sibling modules use snake_case.
"""

import math
import re
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .enums import TrackingStatus

STORE_ID_PATTERN = re.compile(r"^\d{5}-\d{5}$")
BUSINESS_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

HOURS_PER_DAY = 24

# Platform scores are mostly numeric, a few are labels ("High", "Medium")
ScoreValue = Optional[Union[float, str]]

# Domain payload as received; validated by the domain that consumes it
RawDomainRecord = Optional[Any]


def _none_to_zero(v: Any) -> Any:
    if v is None:
        return 0.0
    if isinstance(v, float) and math.isnan(v):
        return 0.0
    return v


class RawRecord(BaseModel):
    """Base for raw records: immutable, tolerant of extra upstream fields."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# ============================================================================
# Platform ratings (DSQR)
# ============================================================================


class PlatformScores(RawRecord):
    """Raw platform score values for DoorDash, UberEats and GrubHub."""

    # DoorDash
    DD_Most_Loved_Restaurant: ScoreValue = None
    DD_Optimization_Score: ScoreValue = None
    DD_Ratings_Average_Rating: ScoreValue = None
    DD_Cancellations_Sales_Lost: ScoreValue = None
    DD_Missing_or_Incorrect_Error_Charges: ScoreValue = None
    DD_Avoidable_Wait_M_Sec: ScoreValue = None
    DD_Total_Dasher_Wait_M_Sec: ScoreValue = None
    DD_number_1_Top_Missing_or_Incorrect_Item: ScoreValue = None
    DD_Downtime_H_MM: ScoreValue = None
    DD_Reviews_Responded: ScoreValue = None

    # UberEats
    UE_Customer_reviews_overview: ScoreValue = None
    UE_Cost_of_Refunds: ScoreValue = None
    UE_Unfulfilled_order_rate: ScoreValue = None
    UE_Time_unavailable_during_open_hours_hh_mm: ScoreValue = None
    UE_Top_inaccurate_item: ScoreValue = None
    UE_Reviews_Responded: ScoreValue = None

    # GrubHub
    GH_Rating: ScoreValue = None
    GH_Food_was_good: ScoreValue = None
    GH_Delivery_was_on_time: ScoreValue = None
    GH_Order_was_accurate: ScoreValue = None


class TrackingFlags(RawRecord):
    """
    Parallel on-track status fields.

    A field absent from the payload stays None and is read as not applicable
    by the platform processor.
    """

    DD_NAOT_Ratings_Average_Rating: Optional[TrackingStatus] = None
    DD_NAOT_Cancellations_Sales_Lost: Optional[TrackingStatus] = None
    DD_NAOT_Missing_or_Incorrect_Error_Charges: Optional[TrackingStatus] = None
    DD_NAOT_Avoidable_Wait_M_Sec: Optional[TrackingStatus] = None
    DD_NAOT_Total_Dasher_Wait_M_Sec: Optional[TrackingStatus] = None
    DD_NAOT_Downtime_H_MM: Optional[TrackingStatus] = None

    UE_NAOT_Customer_reviews_overview: Optional[TrackingStatus] = None
    UE_NAOT_Cost_of_Refunds: Optional[TrackingStatus] = None
    UE_NAOT_Unfulfilled_order_rate: Optional[TrackingStatus] = None
    UE_NAOT_Time_unavailable_during_open_hours_hh_mm: Optional[TrackingStatus] = None

    GH_NAOT_Rating: Optional[TrackingStatus] = None
    GH_NAOT_Food_was_good: Optional[TrackingStatus] = None
    GH_NAOT_Delivery_was_on_time: Optional[TrackingStatus] = None
    GH_NAOT_Order_was_accurate: Optional[TrackingStatus] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_status_is_missing(cls, v: Any) -> Any:
        """Treat empty strings as an absent status."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PlatformRatingsRaw(RawRecord):
    """Daily delivery-platform quality record."""

    score: PlatformScores = Field(default_factory=PlatformScores)
    is_on_track: TrackingFlags = Field(default_factory=TrackingFlags)


# ============================================================================
# Store operations (DSPR)
# ============================================================================


class StoreOperationsRaw(RawRecord):
    """
    Daily or weekly store-operations record.

    Ratios (labor, Digital_Sales_Percent, Customer_Service, ...) are fractions
    in [0, 1]; amounts are currency. Null numerics read as 0.
    """

    labor: float = 0.0
    waste_gateway: float = 0.0
    over_short: float = 0.0
    Refunded_order_Qty: float = 0.0
    Total_Cash_Sales: float = 0.0
    Total_Sales: float = 0.0
    Waste_Alta: float = 0.0
    Modified_Order_Qty: float = 0.0
    Total_TIPS: float = 0.0
    Customer_count: float = 0.0
    DoorDash_Sales: float = 0.0
    UberEats_Sales: float = 0.0
    GrubHub_Sales: float = 0.0
    Phone: float = 0.0
    Call_Center_Agent: float = 0.0
    Website: float = 0.0
    Mobile: float = 0.0
    Digital_Sales_Percent: float = 0.0
    Total_Portal_Eligible_Transactions: float = 0.0
    Put_into_Portal_Percent: float = 0.0
    In_Portal_on_Time_Percent: float = 0.0
    Drive_Thru_Sales: float = 0.0
    Upselling: Optional[float] = None
    Cash_Sales_Vs_Deposite_Difference: float = 0.0
    Avrage_ticket: float = 0.0
    Customer_count_percent: float = 0.0
    Customer_Service: float = 0.0

    @field_validator("*", mode="before")
    @classmethod
    def null_numeric_is_zero(cls, v: Any, info: ValidationInfo) -> Any:
        """Upstream sends null for days without a reading."""
        if info.field_name == "Upselling":
            return v
        return _none_to_zero(v)


# ============================================================================
# Hourly sales
# ============================================================================


class HourRecordRaw(RawRecord):
    """One hour of point-of-sale activity. Every field is optional upstream."""

    Total_Sales: float = 0.0
    Phone_Sales: float = 0.0
    Call_Center_Agent: float = 0.0
    Drive_Thru: float = 0.0
    Website: float = 0.0
    Mobile: float = 0.0
    Order_Count: float = 0.0

    @field_validator("*", mode="before")
    @classmethod
    def null_numeric_is_zero(cls, v: Any) -> Any:
        return _none_to_zero(v)

    def is_empty(self) -> bool:
        """True when no field carries a non-zero reading."""
        return not any(getattr(self, name) for name in type(self).model_fields)


class HourlySalesRaw(RawRecord):
    """
    Hourly sales record for one business day.

    The hour count is deliberately not enforced here: a short or long list is
    reported by the hourly processor as a validation error for its domain.
    """

    franchise_store: str = ""
    business_date: str = ""
    hours: list[HourRecordRaw] = Field(default_factory=list)

    @field_validator("hours", mode="before")
    @classmethod
    def null_hours_are_empty(cls, v: Any) -> Any:
        """Null hour slots are empty hours, not missing ones."""
        if isinstance(v, list):
            return [{} if item is None else item for item in v]
        return v


# ============================================================================
# Envelope
# ============================================================================


class FilteringValues(RawRecord):
    """Filters the upstream report was generated with."""

    date: str = "unknown"
    store: str = "unknown"
    items: list[int] = Field(default_factory=list)
    week: Optional[int] = None
    week_start_date: Optional[str] = Field(default=None, alias="weekStartDate")
    week_end_date: Optional[str] = Field(default=None, alias="weekEndDate")
    lookback_start: Optional[str] = Field(default=None, alias="look back start")
    lookback_end: Optional[str] = Field(default=None, alias="look back end")
    deposit_delivery_url: Optional[str] = Field(default=None, alias="depositDeliveryUrl")

    def has_valid_keys(self) -> bool:
        """Check the store id and business date formats."""
        return bool(
            STORE_ID_PATTERN.match(self.store) and BUSINESS_DATE_PATTERN.match(self.date)
        )


class DailyReports(RawRecord):
    """
    Daily domain records. Any of them may be absent.

    Records are held unvalidated: each domain validates its own record, so a
    malformed value fails only that domain.
    """

    hourly_sales: RawDomainRecord = Field(default=None, alias="dailyHourlySales")
    platform_ratings: RawDomainRecord = Field(default=None, alias="dailyDSQRData")
    store_operations: RawDomainRecord = Field(default=None, alias="dailyDSPRData")


class WeeklyReports(RawRecord):
    """Weekly aggregate records, unvalidated like the daily ones."""

    store_operations: RawDomainRecord = Field(default=None, alias="DSPRData")


class Reports(RawRecord):
    """Report container keyed by period."""

    daily: DailyReports = Field(default_factory=DailyReports)
    weekly: WeeklyReports = Field(default_factory=WeeklyReports)


class RawResponseEnvelope(RawRecord):
    """
    The single raw API payload for one store/date.

    Example:
        >>> envelope = RawResponseEnvelope.model_validate(response_json)
        >>> envelope.filtering.store
        '03795-00001'
    """

    filtering: FilteringValues = Field(
        default_factory=FilteringValues, alias="Filtering Values"
    )
    reports: Reports = Field(default_factory=Reports)

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "Filtering Values": {
                    "date": "2025-06-12",
                    "store": "03795-00001",
                    "items": [],
                    "week": 24,
                    "weekStartDate": "2025-06-09",
                    "weekEndDate": "2025-06-15",
                    "look back start": "2025-05-13",
                    "look back end": "2025-06-11",
                    "depositDeliveryUrl": "",
                },
                "reports": {
                    "daily": {
                        "dailyHourlySales": {
                            "franchise_store": "03795-00001",
                            "business_date": "2025-06-12",
                            "hours": [{} for _ in range(HOURS_PER_DAY)],
                        },
                        "dailyDSQRData": {"score": {}, "is_on_track": {}},
                        "dailyDSPRData": {"Total_Sales": 2850.0, "labor": 0.29},
                    },
                    "weekly": {"DSPRData": {"Total_Sales": 19600.0, "labor": 0.30}},
                },
            }
        },
    )
