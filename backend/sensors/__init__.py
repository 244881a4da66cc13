"""
Sensors Module
Reading ingestion and metric extraction.

Exports:
    Models: Reading, Metric, MetricPoint, to_reading
    Extraction: extract_series, to_number
    Source: ReadingSource, ReadingSourceError, TimeRange
    Analysis: overview, OverviewAnalysis
"""

from .models import (
    Reading,
    Metric,
    MetricPoint,
    MetricDataset,
    METRIC_UNITS,
    ALERT_METRICS,
    to_reading,
)

from .extractor import extract_series, to_number, DEFAULT_SERIES_LIMIT
from .source import ReadingSource, ReadingSourceError, TimeRange
from .analysis import overview, OverviewAnalysis, MetricOverview

__all__ = [
    # Models
    "Reading",
    "Metric",
    "MetricPoint",
    "MetricDataset",
    "METRIC_UNITS",
    "ALERT_METRICS",
    "to_reading",
    # Extraction
    "extract_series",
    "to_number",
    "DEFAULT_SERIES_LIMIT",
    # Source
    "ReadingSource",
    "ReadingSourceError",
    "TimeRange",
    # Analysis
    "overview",
    "OverviewAnalysis",
    "MetricOverview",
]
