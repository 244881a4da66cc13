"""
Sensor Models
The SINGLE SOURCE OF TRUTH for reading formats.

Rows from the hosted readings table are normalized into Readings.
Everything downstream sees ONLY Readings and MetricPoints.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum


# =============================================================================
# Metric Vocabulary
# =============================================================================

class Metric(str, Enum):
    """Monitored physical quantities"""
    TEMPERATURE = "Temperature"
    HUMIDITY = "Humidity"
    SOIL_MOISTURE = "Soil moisture"
    SOIL_PH = "Soil pH"
    WATER_FLOW = "Water flow"
    WATER_DEPTH = "Water depth"

    @property
    def key(self) -> str:
        """URL-friendly key (soil-moisture)"""
        return self.value.lower().replace(" ", "-")

    @property
    def unit(self) -> Optional[str]:
        return METRIC_UNITS.get(self)

    @classmethod
    def from_key(cls, key: str) -> "Metric":
        for metric in cls:
            if metric.key == key:
                return metric
        raise ValueError(f"Unknown metric key: {key}")


METRIC_UNITS: Dict[Metric, Optional[str]] = {
    Metric.TEMPERATURE: "°C",
    Metric.HUMIDITY: "%",
    Metric.SOIL_MOISTURE: "%",
    Metric.SOIL_PH: None,
    Metric.WATER_FLOW: "L",
    Metric.WATER_DEPTH: "cm",
}

# Water flow is charted but never alerted on
ALERT_METRICS: List[Metric] = [
    Metric.TEMPERATURE,
    Metric.HUMIDITY,
    Metric.SOIL_MOISTURE,
    Metric.SOIL_PH,
    Metric.WATER_DEPTH,
]


# =============================================================================
# Reading: The Core Data Contract
# =============================================================================

class Reading(BaseModel):
    """
    A single persisted sensor record.

    Fields:
        id: Row id in the hosted table
        device_id: Device identifier (temp-humid, soil, analog, ...)
        payload: Opaque key-value map as sent by the device
        received_at: Timestamp string exactly as stored; alert ids derive from it
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    device_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    received_at: str

    @field_validator('id', mode='before')
    @classmethod
    def stringify_id(cls, v):
        return str(v) if v is not None else None

    @field_validator('payload', mode='before')
    @classmethod
    def default_payload(cls, v):
        """Null payloads become empty maps"""
        return v if isinstance(v, dict) else {}

    @property
    def received_dt(self) -> Optional[datetime]:
        return parse_timestamp(self.received_at)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO timestamp, tolerating a trailing Z"""
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (AttributeError, ValueError):
        return None


def to_reading(row: Dict[str, Any]) -> Reading:
    """Convert a raw table row to a Reading"""
    return Reading(
        id=row.get("id"),
        device_id=row.get("device_id") or "",
        payload=row.get("payload"),
        received_at=str(row.get("received_at") or ""),
    )


# =============================================================================
# Metric Series
# =============================================================================

@dataclass(frozen=True)
class MetricPoint:
    """One charted value of a metric"""
    label: str
    value: float
    received_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "value": self.value,
            "received_at": self.received_at,
        }


# metric -> ordered points (oldest first)
MetricDataset = Dict[Metric, List[MetricPoint]]
