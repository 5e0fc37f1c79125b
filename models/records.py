"""Transient domain models rebuilt from the upstream feeds on every pass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

RawTrayId = Union[str, int, float, None]


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single telemetry sample for one tray."""

    tray_id: str
    raw_tray_id: RawTrayId
    timestamp: datetime
    temperature: float
    humidity: float
    light_intensity: float
    ph_level: float


@dataclass(frozen=True, slots=True)
class PlantConfiguration:
    """Target metrics and tolerance configured for one tray."""

    tray_id: str
    raw_tray_id: RawTrayId
    plant_type: str
    target_temperature: float
    target_humidity: float
    target_light_intensity: float
    target_ph_level: float
    tolerance_percentage: float
