"""
Metric Extractor
Routes raw readings into one bounded series per metric.

Each device feeds one or more metrics:
    temp-humid    → Temperature (ext temperature preferred), Humidity
    soil          → Soil pH, Temperature
    soilmositure  → Soil moisture, Temperature
    waterflow     → Water flow
    analog        → Water depth

Unparsable values become 0. Some metrics then drop the point entirely
rather than charting a false zero.
"""

import math
import re
from typing import Any, Iterable, Optional

from .models import Metric, MetricDataset, MetricPoint, Reading

DEFAULT_SERIES_LIMIT = 15

_LEADING_NUMBER = re.compile(r'^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?')


def to_number(value: Any) -> float:
    """
    Coerce a payload field to float.

    Numbers pass through, strings use their leading numeric prefix
    ("12.5abc" → 12.5), everything else is 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return 0.0
        try:
            number = float(match.group(0))
        except ValueError:
            return 0.0
        return number if math.isfinite(number) else 0.0
    return 0.0


def point_label(reading: Reading) -> str:
    """Local HH:MM of the reading"""
    ts = reading.received_dt
    if ts is None:
        return ""
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return ts.strftime("%H:%M")


def empty_dataset() -> MetricDataset:
    return {metric: [] for metric in Metric}


def extract_series(
    readings: Iterable[Reading],
    limit: Optional[int] = DEFAULT_SERIES_LIMIT
) -> MetricDataset:
    """
    Build one series per metric from a reading batch.

    Args:
        readings: Readings in chronological order
        limit: Keep only the most recent N points per metric (None = all)

    Returns:
        Dict of Metric → points, input order preserved
    """
    dataset = empty_dataset()

    def add(metric: Metric, value: float, reading: Reading, label: str) -> None:
        dataset[metric].append(MetricPoint(label, value, reading.received_at))

    for reading in readings:
        p = reading.payload
        label = point_label(reading)
        device = reading.device_id

        if device == "temp-humid":
            temp = to_number(p.get("temperature"))
            ext = to_number(p.get("ext_temperature"))
            if temp != 0 or ext != 0:
                add(Metric.TEMPERATURE, ext if ext != 0 else temp, reading, label)
            humidity = to_number(p.get("humidity"))
            if 0 < humidity <= 100:
                add(Metric.HUMIDITY, humidity, reading, label)
        elif device == "soil":
            add(Metric.SOIL_PH, to_number(p.get("PH1_SOIL")), reading, label)
            add(Metric.TEMPERATURE, to_number(p.get("TEMP_SOIL")), reading, label)
        elif device == "soilmositure":
            add(Metric.SOIL_MOISTURE, to_number(p.get("water_SOIL")), reading, label)
            add(Metric.TEMPERATURE, to_number(p.get("temp_SOIL")), reading, label)
        elif device == "waterflow":
            flow = to_number(p.get("Water_flow_value")) or to_number(p.get("Total_pulse"))
            add(Metric.WATER_FLOW, flow, reading, label)
        elif device == "analog":
            add(Metric.WATER_DEPTH, to_number(p.get("Water_deep_cm")), reading, label)

    if limit:
        for metric, points in dataset.items():
            dataset[metric] = points[-limit:]

    return dataset
