"""
Prometheus metrics for db-compare

Usage:
    from dbcompare.utils.metrics import ComparisonMetrics, MetricsPublisher

    metrics = ComparisonMetrics()
    metrics.record_table("dbo.Customers", "MISMATCH", duration=4.2, mismatch_count=3)
"""

from .comparison import ComparisonMetrics
from .publisher import MetricsPublisher

__all__ = [
    "ComparisonMetrics",
    "MetricsPublisher",
]
