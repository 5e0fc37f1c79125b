"""SQLAlchemy-backed record store; one row per combined record."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from sqlalchemy import Boolean, DateTime, Float, Integer, String, create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from app.schemas import CombinedRecord
from datastore.base import RecordStore, as_utc
from errors import StorageError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class PlantSensorRow(Base):
    __tablename__ = "plant_sensor_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tray_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    plant_type: Mapped[str] = mapped_column(String(100), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    actual_temperature: Mapped[float] = mapped_column(Float, nullable=False)
    actual_humidity: Mapped[float] = mapped_column(Float, nullable=False)
    actual_light_intensity: Mapped[float] = mapped_column(Float, nullable=False)
    actual_ph_level: Mapped[float] = mapped_column(Float, nullable=False)

    target_temperature: Mapped[float] = mapped_column(Float, nullable=False)
    target_humidity: Mapped[float] = mapped_column(Float, nullable=False)
    target_light_intensity: Mapped[float] = mapped_column(Float, nullable=False)
    target_ph_level: Mapped[float] = mapped_column(Float, nullable=False)

    tolerance_percentage: Mapped[float] = mapped_column(Float, nullable=False)

    temperature_deviation: Mapped[float] = mapped_column(Float, nullable=False)
    humidity_deviation: Mapped[float] = mapped_column(Float, nullable=False)
    light_intensity_deviation: Mapped[float] = mapped_column(Float, nullable=False)
    ph_level_deviation: Mapped[float] = mapped_column(Float, nullable=False)

    is_temperature_in_range: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_humidity_in_range: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_light_intensity_in_range: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_ph_level_in_range: Mapped[bool] = mapped_column(Boolean, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<PlantSensorRow id={self.id} tray_id={self.tray_id!r}>"


_ROW_FIELDS = tuple(
    column.key for column in PlantSensorRow.__table__.columns if column.key != "id"
)


def _to_row(record: CombinedRecord, created_at: datetime) -> PlantSensorRow:
    values = record.model_dump(include=set(_ROW_FIELDS))
    values["timestamp"] = as_utc(record.timestamp)
    values["created_at"] = created_at
    return PlantSensorRow(**values)


def _to_record(row: PlantSensorRow) -> CombinedRecord:
    values = {key: getattr(row, key) for key in _ROW_FIELDS}
    # SQLite drops the offset on round trip.
    values["timestamp"] = as_utc(row.timestamp)
    values["created_at"] = as_utc(row.created_at)
    return CombinedRecord(id=row.id, **values)


def _ensure_sqlite_directory(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if database and database != ":memory:" and not database.startswith("file:"):
        Path(database).parent.mkdir(parents=True, exist_ok=True)


class SqlRecordStore(RecordStore):

    backend = "relational"

    def __init__(self, url: str, engine: Optional[Engine] = None) -> None:
        self.url = url
        if engine is None:
            _ensure_sqlite_directory(url)
        self.engine = engine or create_engine(url)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_schema(self) -> None:
        """Create the records table if it is missing. Run once at startup."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            logger.error("Failed to create schema.", exc_info=True, extra={"backend": self.backend})
            raise StorageError("Could not create the records table.", details=str(exc)) from exc

    def save(self, records: Sequence[CombinedRecord]) -> list[CombinedRecord]:
        logger.info(
            "Saving combined records to database.",
            extra={"record_count": len(records), "backend": self.backend},
        )
        created_at = datetime.now(timezone.utc)
        rows = [_to_row(record, created_at) for record in records]
        try:
            with self._sessions.begin() as session:
                session.add_all(rows)
                session.flush()
                stored = [_to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            logger.error("Failed to save combined records.", exc_info=True, extra={"backend": self.backend})
            raise StorageError("Could not save combined records.", details=str(exc)) from exc
        return stored

    def list_all(self) -> list[CombinedRecord]:
        statement = select(PlantSensorRow).order_by(
            PlantSensorRow.timestamp.desc(), PlantSensorRow.id.desc()
        )
        try:
            with self._sessions() as session:
                return [_to_record(row) for row in session.scalars(statement)]
        except SQLAlchemyError as exc:
            logger.error("Failed to list combined records.", exc_info=True, extra={"backend": self.backend})
            raise StorageError("Could not read combined records.", details=str(exc)) from exc

    def get_by_key(self, tray_id: str) -> Optional[CombinedRecord]:
        statement = (
            select(PlantSensorRow)
            .where(PlantSensorRow.tray_id == tray_id)
            .order_by(PlantSensorRow.timestamp.desc(), PlantSensorRow.id.desc())
            .limit(1)
        )
        try:
            with self._sessions() as session:
                row = session.scalars(statement).first()
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            logger.error(
                "Failed to read combined record.",
                exc_info=True,
                extra={"backend": self.backend, "tray_id": tray_id},
            )
            raise StorageError(
                f"Could not read the record for tray {tray_id}.", details=str(exc)
            ) from exc

    def close(self) -> None:
        self.engine.dispose()
