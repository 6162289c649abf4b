"""
opsmetrics: operational metrics analysis for restaurant stores.

Ingests one raw report envelope per store and business date and derives
delivery-platform performance, store-operations grades and trends, hourly
sales analysis, and prioritized alerts.
"""

__version__ = "1.0.0"
