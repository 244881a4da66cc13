"""
Data API
Metric series for the overview and detail views, plus the 24h analysis.

Endpoints:
    GET /api/data/overview            → Rolling series, latest points per metric
    GET /api/data/metrics             → Metric keys, titles, units
    GET /api/data/metrics/{key}       → Time-range bounded series for one metric
    GET /api/data/analysis            → Rule-based 24h summary
"""

from datetime import datetime
from fastapi import APIRouter, HTTPException, Query, Request
from typing import Optional

from sensors import Metric, ReadingSourceError, TimeRange, extract_series, overview
from sensors.models import parse_timestamp

router = APIRouter(prefix="/data", tags=["Data"])


def _fetch_error(e: ReadingSourceError) -> HTTPException:
    return HTTPException(502, str(e) or "Failed to fetch readings")


@router.get("/overview")
def get_overview(request: Request):
    settings = request.app.state.settings
    try:
        readings = request.app.state.source.fetch_latest(settings.OVERVIEW_BATCH_SIZE)
    except ReadingSourceError as e:
        raise _fetch_error(e)

    dataset = extract_series(readings, settings.SERIES_LIMIT)
    return {
        "readings": len(readings),
        "series": {
            metric.value: [p.to_dict() for p in points]
            for metric, points in dataset.items()
        }
    }


@router.get("/metrics")
def list_metrics():
    return {
        "metrics": [
            {"key": m.key, "title": m.value, "unit": m.unit}
            for m in Metric
        ]
    }


@router.get("/metrics/{key}")
def get_metric_series(
    key: str,
    request: Request,
    range: str = Query(default="24h", description="24h, 1w, 1m, 3m, 1y or custom"),
    start: Optional[str] = Query(default=None, description="ISO start (custom range)"),
    end: Optional[str] = Query(default=None, description="ISO end (custom range)")
):
    try:
        metric = Metric.from_key(key)
    except ValueError:
        raise HTTPException(404, f"Unknown metric: {key}")

    try:
        time_range = TimeRange(range)
    except ValueError:
        raise HTTPException(400, f"Invalid range: {range}. Use: 24h, 1w, 1m, 3m, 1y, custom")

    start_dt: Optional[datetime] = None
    end_dt: Optional[datetime] = None
    if time_range is TimeRange.CUSTOM:
        start_dt, end_dt = parse_timestamp(start or ""), parse_timestamp(end or "")
        if start_dt is None or end_dt is None:
            raise HTTPException(400, "Custom range needs ISO 'start' and 'end'")
        try:
            reversed_range = start_dt > end_dt
        except TypeError:
            raise HTTPException(400, "'start' and 'end' must both include or both omit a timezone")
        if reversed_range:
            raise HTTPException(400, "'start' must not be after 'end'")

    limit = request.app.state.settings.DETAIL_FETCH_LIMIT
    try:
        readings = request.app.state.source.fetch_window(time_range, start_dt, end_dt, limit=limit)
    except ReadingSourceError as e:
        raise _fetch_error(e)

    points = extract_series(readings, limit)[metric]
    return {
        "metric": metric.value,
        "key": metric.key,
        "unit": metric.unit,
        "range": time_range.value,
        "count": len(points),
        "data": [p.to_dict() for p in points]
    }


@router.get("/analysis")
def get_analysis(request: Request):
    limit = request.app.state.settings.ANALYSIS_FETCH_LIMIT
    try:
        readings = request.app.state.source.fetch_window(TimeRange.DAY, limit=limit)
    except ReadingSourceError as e:
        raise _fetch_error(e)

    return overview(extract_series(readings, None)).to_dict()
