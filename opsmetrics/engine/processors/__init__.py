"""Domain processors: one per raw record type."""

from opsmetrics.engine.processors.hourly_sales import HourlyDataError, HourlySalesProcessor
from opsmetrics.engine.processors.platform_ratings import PlatformRatingsProcessor
from opsmetrics.engine.processors.store_operations import StoreOperationsProcessor

__all__ = [
    "HourlyDataError",
    "HourlySalesProcessor",
    "PlatformRatingsProcessor",
    "StoreOperationsProcessor",
]
