"""
Overview Analysis
Rule-based per-metric summary of the last 24 hours.

All functions are PURE (series in → summary out).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .models import Metric, MetricDataset, MetricPoint

ANALYSIS_POINTS = 24
TREND_THRESHOLD_PCT = 5.0


@dataclass
class MetricOverview:
    metric: str
    unit: Optional[str]
    count: int
    avg: float
    min: float
    max: float
    latest: float
    trend: str
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "unit": self.unit,
            "count": self.count,
            "avg": round(self.avg, 4),
            "min": self.min,
            "max": self.max,
            "latest": self.latest,
            "trend": self.trend,
            "summary": self.summary,
        }


@dataclass
class OverviewAnalysis:
    period_label: str
    metrics: List[MetricOverview] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period_label": self.period_label,
            "metrics": [m.to_dict() for m in self.metrics],
            "generated_at": self.generated_at.isoformat(),
        }


def compute_trend(values: np.ndarray) -> str:
    """
    Compare first-half and second-half means relative to the value range.

    Returns "up", "down" or "stable" (fewer than 3 points is stable).
    """
    if len(values) < 3:
        return "stable"
    mid = len(values) // 2
    diff = float(np.mean(values[mid:]) - np.mean(values[:mid]))
    spread = max(1.0, float(np.max(values) - np.min(values)))
    pct = diff / spread * 100
    if pct > TREND_THRESHOLD_PCT:
        return "up"
    if pct < -TREND_THRESHOLD_PCT:
        return "down"
    return "stable"


def build_summary(metric: str, unit: Optional[str], avg: float, lo: float, hi: float, trend: str) -> str:
    u = unit or ""
    trend_text = {
        "up": "trending up",
        "down": "trending down",
    }.get(trend, "relatively stable")
    return f"{metric} averaged {avg:.1f}{u} (range {lo:.1f}–{hi:.1f}{u}), {trend_text}."


def metric_overview(metric: Metric, points: List[MetricPoint]) -> MetricOverview:
    values = pd.Series([p.value for p in points], dtype="float64").dropna().to_numpy()
    count = len(values)
    if count == 0:
        avg = lo = hi = latest = 0.0
    else:
        avg = float(np.mean(values))
        lo = float(np.min(values))
        hi = float(np.max(values))
        latest = float(values[-1])
    trend = compute_trend(values)
    return MetricOverview(
        metric=metric.value,
        unit=metric.unit,
        count=count,
        avg=avg,
        min=lo,
        max=hi,
        latest=latest,
        trend=trend,
        summary=build_summary(metric.value, metric.unit, avg, lo, hi, trend),
    )


def overview(dataset: MetricDataset, points: int = ANALYSIS_POINTS) -> OverviewAnalysis:
    """Summarize every metric that has data, using its last N points"""
    metrics = [
        metric_overview(metric, dataset.get(metric, [])[-points:])
        for metric in Metric
    ]
    return OverviewAnalysis(
        period_label="Last 24 hours",
        metrics=[m for m in metrics if m.count > 0],
    )
