"""
Reading Source
Client for the hosted readings table (PostgREST over HTTP).

Usage:
    source = ReadingSource(url, anon_key)
    latest = source.fetch_latest(150)                  # chronological
    window = source.fetch_window(TimeRange.WEEK)       # ascending, bounded
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import requests

from .models import Reading, to_reading

logger = logging.getLogger(__name__)

READING_COLUMNS = "id,device_id,payload,received_at"


class ReadingSourceError(Exception):
    """Fetch failed (network, HTTP status or malformed body)"""


class TimeRange(str, Enum):
    """Detail-view windows"""
    DAY = "24h"
    WEEK = "1w"
    MONTH = "1m"
    QUARTER = "3m"
    YEAR = "1y"
    CUSTOM = "custom"

    @property
    def duration(self) -> timedelta:
        days = {
            "24h": 1,
            "1w": 7,
            "1m": 30,
            "3m": 90,
            "1y": 365,
        }
        return timedelta(days=days.get(self.value, 1))

    def bounds(
        self,
        now: Optional[datetime] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Tuple[datetime, datetime]:
        """Resolve to (from, to). Custom without both ends falls back to 24h."""
        now = now or datetime.now(timezone.utc)
        if self is TimeRange.CUSTOM and start and end:
            return start, end
        return now - self.duration, now


class ReadingSource:
    """
    Query interface over the readings table.

    Supports ordering, row limit and received_at bounds.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "sensor_readings",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.table = table
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    def query(
        self,
        ascending: bool = True,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None
    ) -> List[Reading]:
        """
        Fetch readings ordered by received_at.

        Raises:
            ReadingSourceError: on any transport or decode failure
        """
        if not self.configured:
            raise ReadingSourceError("Reading source is not configured")

        params: List[Tuple[str, Any]] = [
            ("select", READING_COLUMNS),
            ("order", f"received_at.{'asc' if ascending else 'desc'}"),
        ]
        if since is not None:
            params.append(("received_at", f"gte.{since.isoformat()}"))
        if until is not None:
            params.append(("received_at", f"lte.{until.isoformat()}"))
        if limit:
            params.append(("limit", int(limit)))

        url = f"{self.base_url}/rest/v1/{self.table}"
        try:
            resp = self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
            rows = resp.json()
        except requests.exceptions.HTTPError as e:
            raise ReadingSourceError(_error_message(e.response) or str(e)) from e
        except requests.exceptions.RequestException as e:
            raise ReadingSourceError(f"Failed to fetch readings: {e}") from e
        except ValueError as e:
            raise ReadingSourceError("Malformed response from reading source") from e

        if not isinstance(rows, list):
            raise ReadingSourceError("Malformed response from reading source")

        return [to_reading(row) for row in rows if isinstance(row, dict)]

    def fetch_latest(self, limit: int = 150) -> List[Reading]:
        """Most recent N readings, returned oldest first"""
        readings = self.query(ascending=False, limit=limit)
        readings.reverse()
        return readings

    def fetch_window(
        self,
        time_range: TimeRange = TimeRange.DAY,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 2000
    ) -> List[Reading]:
        """Readings within a time range, ascending"""
        since, until = time_range.bounds(start=start, end=end)
        return self.query(ascending=True, limit=limit, since=since, until=until)


def _error_message(response: Optional[requests.Response]) -> Optional[str]:
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message") or body.get("error")
    return None
