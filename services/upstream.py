"""Timed fetches of the sensor and plant configuration feeds."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional, TypeVar

import httpx

from errors import FetchError, ParseError
from models.records import PlantConfiguration, SensorReading
from services.normalizer import DEFAULT_TRAY_PREFIX
from services.parsing import parse_plant_configurations, parse_sensor_readings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UpstreamClient:
    """Reads both feeds over HTTP and parses them into domain models."""

    def __init__(
        self,
        sensor_url: str,
        config_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        tray_prefix: str = DEFAULT_TRAY_PREFIX,
    ) -> None:
        self.sensor_url = sensor_url
        self.config_url = config_url
        self.tray_prefix = tray_prefix
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_sensor_readings(self) -> list[SensorReading]:
        return await self._fetch(self.sensor_url, "sensor readings", parse_sensor_readings)

    async def fetch_plant_configurations(self) -> list[PlantConfiguration]:
        return await self._fetch(
            self.config_url, "plant configurations", parse_plant_configurations
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _fetch(
        self,
        url: str,
        label: str,
        parser: Callable[[Any, str], list[T]],
    ) -> list[T]:
        logger.info("Fetching %s.", label, extra={"url": url})
        start_time = time.perf_counter()
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            logger.error("Timed out fetching %s.", label, extra={"url": url})
            raise FetchError(
                f"Timed out fetching {label}.", url=url, timed_out=True, details=str(exc)
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Failed to reach the %s feed.", label, extra={"url": url})
            raise FetchError(
                f"Failed to fetch {label}: {exc.__class__.__name__}.", url=url, details=str(exc)
            ) from exc

        if not response.is_success:
            logger.error(
                "Failed to fetch %s.",
                label,
                extra={"url": url, "status_code": response.status_code},
            )
            raise FetchError(
                f"Failed to fetch {label}: HTTP {response.status_code}.",
                url=url,
                status_code=response.status_code,
            )

        body = response.text
        if not body.strip():
            return []
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ParseError(f"The {label} feed did not return JSON.", details=str(exc)) from exc

        items = parser(payload, self.tray_prefix)
        logger.info(
            "Parsed %s.",
            label,
            extra={
                "url": url,
                "record_count": len(items),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return items
