"""Pydantic schemas for persisted records and the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CombinedRecord(BaseModel):
    """A sensor reading joined to its tray configuration and evaluated.

    The metric fields are frozen once computed; storage backends only fill in
    ``id`` and ``created_at`` on the copy they persist.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: Optional[int] = None
    tray_id: str
    plant_type: str = ""
    timestamp: datetime

    actual_temperature: float
    actual_humidity: float
    actual_light_intensity: float
    actual_ph_level: float

    target_temperature: float
    target_humidity: float
    target_light_intensity: float
    target_ph_level: float

    tolerance_percentage: float

    temperature_deviation: float
    humidity_deviation: float
    light_intensity_deviation: float
    ph_level_deviation: float

    is_temperature_in_range: bool
    is_humidity_in_range: bool
    is_light_intensity_in_range: bool
    is_ph_level_in_range: bool

    created_at: Optional[datetime] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_in_range(self) -> bool:
        return (
            self.is_temperature_in_range
            and self.is_humidity_in_range
            and self.is_light_intensity_in_range
            and self.is_ph_level_in_range
        )


class SkippedReading(BaseModel):
    """A sensor reading excluded from reconciliation, with the reason."""

    tray_id: str
    reason: str


class ApiError(BaseModel):
    """Machine-readable failure description carried in the response envelope."""

    code: str
    message: str
    details: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every API payload."""

    success: bool
    message: str = ""
    data: Optional[T] = None
    timestamp: datetime = Field(default_factory=_utcnow)
