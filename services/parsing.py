"""Conversion of upstream JSON payloads into transient domain models.

Field-level problems degrade to defaults so that one bad value never rejects
a whole feed; only a payload with the wrong overall shape raises.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Mapping

from errors import ParseError
from models.records import PlantConfiguration, SensorReading
from services.normalizer import DEFAULT_TRAY_PREFIX, describe_value, normalize_tray_id

logger = logging.getLogger(__name__)


def coerce_float(value: Any, field: str) -> float:
    """Return ``value`` as a finite float, or 0.0 when it cannot be read as one."""
    if value is None:
        return 0.0

    parsed: float | None = None
    if isinstance(value, bool):
        parsed = None
    elif isinstance(value, (int, float)):
        try:
            parsed = float(value)
        except OverflowError:
            parsed = None
    elif isinstance(value, str):
        try:
            parsed = float(value.strip())
        except (ValueError, OverflowError):
            parsed = None

    if parsed is None or not math.isfinite(parsed):
        logger.warning(
            "Unparseable numeric field; defaulting to 0.0.",
            extra={"field": field, "raw_value": describe_value(value)},
        )
        return 0.0
    return parsed


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp as UTC, falling back to the current time."""
    if isinstance(value, str):
        candidate = value.strip()
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)

    if value is not None:
        logger.warning(
            "Unparseable timestamp; using current time.",
            extra={"field": "timestamp", "raw_value": describe_value(value)},
        )
    return datetime.now(timezone.utc)


def _parse_plant_type(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _iter_objects(payload: Any, feed: str) -> list[Mapping[str, Any]]:
    if not isinstance(payload, list):
        raise ParseError(
            f"Expected a JSON array from the {feed} feed, got {type(payload).__name__}."
        )
    for index, element in enumerate(payload):
        if not isinstance(element, Mapping):
            raise ParseError(
                f"Element {index} of the {feed} feed is not a JSON object.",
                details=repr(element)[:200],
            )
    return payload


def parse_sensor_readings(
    payload: Any, prefix: str = DEFAULT_TRAY_PREFIX
) -> list[SensorReading]:
    readings: list[SensorReading] = []
    for element in _iter_objects(payload, "sensor"):
        raw_tray_id = element.get("tray_id")
        readings.append(
            SensorReading(
                tray_id=normalize_tray_id(raw_tray_id, prefix),
                raw_tray_id=raw_tray_id,
                timestamp=parse_timestamp(element.get("timestamp")),
                temperature=coerce_float(element.get("temperature"), "temperature"),
                humidity=coerce_float(element.get("humidity"), "humidity"),
                light_intensity=coerce_float(element.get("light_intensity"), "light_intensity"),
                ph_level=coerce_float(element.get("ph_level"), "ph_level"),
            )
        )
    return readings


def parse_plant_configurations(
    payload: Any, prefix: str = DEFAULT_TRAY_PREFIX
) -> list[PlantConfiguration]:
    configurations: list[PlantConfiguration] = []
    for element in _iter_objects(payload, "plant configuration"):
        raw_tray_id = element.get("tray_id")
        configurations.append(
            PlantConfiguration(
                tray_id=normalize_tray_id(raw_tray_id, prefix),
                raw_tray_id=raw_tray_id,
                plant_type=_parse_plant_type(element.get("plant_type")),
                target_temperature=coerce_float(
                    element.get("target_temperature"), "target_temperature"
                ),
                target_humidity=coerce_float(element.get("target_humidity"), "target_humidity"),
                target_light_intensity=coerce_float(
                    element.get("target_light_intensity"), "target_light_intensity"
                ),
                target_ph_level=coerce_float(element.get("target_ph_level"), "target_ph_level"),
                tolerance_percentage=coerce_float(
                    element.get("tolerance_percentage"), "tolerance_percentage"
                ),
            )
        )
    return configurations
