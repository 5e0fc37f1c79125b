"""Join of sensor readings to tray configurations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from app.schemas import CombinedRecord, SkippedReading
from models.records import PlantConfiguration, SensorReading
from services.deviation import evaluate

logger = logging.getLogger(__name__)

NO_CONFIGURATION = "no configuration"


@dataclass
class ReconciliationResult:
    """Combined records in sensor order plus the readings that were left out."""

    records: List[CombinedRecord] = field(default_factory=list)
    skipped: List[SkippedReading] = field(default_factory=list)


class Reconciler:
    """Pure join component that can be unit tested in isolation."""

    def reconcile(
        self,
        readings: Iterable[SensorReading],
        configurations: Iterable[PlantConfiguration],
    ) -> ReconciliationResult:
        by_tray: Dict[str, PlantConfiguration] = {}
        for configuration in configurations:
            if configuration.tray_id in by_tray:
                logger.debug(
                    "Duplicate configuration for tray; keeping the later one.",
                    extra={"tray_id": configuration.tray_id},
                )
            by_tray[configuration.tray_id] = configuration

        result = ReconciliationResult()
        for reading in readings:
            configuration = by_tray.get(reading.tray_id)
            if configuration is None:
                logger.warning(
                    "Skipping sensor reading without a plant configuration.",
                    extra={"tray_id": reading.tray_id, "reason": NO_CONFIGURATION},
                )
                result.skipped.append(
                    SkippedReading(tray_id=reading.tray_id, reason=NO_CONFIGURATION)
                )
                continue
            result.records.append(self.combine(reading, configuration))

        return result

    @staticmethod
    def combine(reading: SensorReading, configuration: PlantConfiguration) -> CombinedRecord:
        tolerance = configuration.tolerance_percentage
        temperature = evaluate(reading.temperature, configuration.target_temperature, tolerance)
        humidity = evaluate(reading.humidity, configuration.target_humidity, tolerance)
        light = evaluate(
            reading.light_intensity, configuration.target_light_intensity, tolerance
        )
        ph_level = evaluate(reading.ph_level, configuration.target_ph_level, tolerance)

        return CombinedRecord(
            tray_id=reading.tray_id,
            plant_type=configuration.plant_type,
            timestamp=reading.timestamp,
            actual_temperature=reading.temperature,
            actual_humidity=reading.humidity,
            actual_light_intensity=reading.light_intensity,
            actual_ph_level=reading.ph_level,
            target_temperature=configuration.target_temperature,
            target_humidity=configuration.target_humidity,
            target_light_intensity=configuration.target_light_intensity,
            target_ph_level=configuration.target_ph_level,
            tolerance_percentage=tolerance,
            temperature_deviation=temperature.deviation,
            humidity_deviation=humidity.deviation,
            light_intensity_deviation=light.deviation,
            ph_level_deviation=ph_level.deviation,
            is_temperature_in_range=temperature.in_range,
            is_humidity_in_range=humidity.in_range,
            is_light_intensity_in_range=light.in_range,
            is_ph_level_in_range=ph_level.in_range,
        )
