"""Reliability analytics over recorded metamorphic test outcomes."""

from .aggregator import (
    AnalyticsAggregator,
    AnalyticsReport,
    PerModelStat,
    PerRelationStat,
    TrendBucket,
    average_reliability,
)

__all__ = [
    "AnalyticsAggregator",
    "AnalyticsReport",
    "PerModelStat",
    "PerRelationStat",
    "TrendBucket",
    "average_reliability",
]
