"""Reconciliation pass orchestration: fetch, join, persist."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from app.schemas import CombinedRecord
from datastore.base import RecordStore
from datastore.factory import build_record_store
from services.normalizer import DEFAULT_TRAY_PREFIX, resolve_tray_id
from services.reconciler import Reconciler
from services.upstream import UpstreamClient
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Coordinates the upstream feeds, the reconciler and the record store."""

    def __init__(
        self,
        upstream: UpstreamClient,
        store: RecordStore,
        reconciler: Optional[Reconciler] = None,
        tray_prefix: str = DEFAULT_TRAY_PREFIX,
    ) -> None:
        self.upstream = upstream
        self.store = store
        self.reconciler = reconciler or Reconciler()
        self.tray_prefix = tray_prefix

    async def run(self) -> list[CombinedRecord]:
        """Run one reconciliation pass and return the persisted records.

        Both feeds are fetched concurrently. A failure in either fetch, or in
        persistence, propagates unchanged and nothing is returned.
        """
        start_time = time.perf_counter()
        sensor_task = asyncio.ensure_future(self.upstream.fetch_sensor_readings())
        config_task = asyncio.ensure_future(self.upstream.fetch_plant_configurations())
        try:
            readings, configurations = await asyncio.gather(sensor_task, config_task)
        except BaseException as exc:
            sensor_task.cancel()
            config_task.cancel()
            if isinstance(exc, Exception):
                logger.error("Reconciliation pass aborted: %s", exc)
            raise

        logger.info(
            "Fetched %d sensor readings and %d plant configurations.",
            len(readings),
            len(configurations),
        )

        result = self.reconciler.reconcile(readings, configurations)
        stored = await asyncio.to_thread(self.store.save, result.records)

        logger.info(
            "Reconciliation pass complete.",
            extra={
                "record_count": len(stored),
                "skipped_count": len(result.skipped),
                "backend": self.store.backend,
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return stored

    async def list_records(self) -> list[CombinedRecord]:
        return await asyncio.to_thread(self.store.list_all)

    async def get_latest(self, tray_id: str) -> Optional[CombinedRecord]:
        """Return the newest stored record for any encoding of ``tray_id``.

        An identifier with no tray number finds nothing, rather than the records
        filed under the placeholder key.
        """
        key = resolve_tray_id(tray_id, self.tray_prefix)
        if key is None:
            logger.info("Lookup for unresolvable tray identifier %r.", tray_id)
            return None
        return await asyncio.to_thread(self.store.get_by_key, key)

    async def aclose(self) -> None:
        await self.upstream.aclose()
        self.store.close()


def build_reconciliation_service(settings: Optional[Settings] = None) -> ReconciliationService:
    """Wire the service from configuration."""
    settings = settings or get_settings()
    upstream = UpstreamClient(
        sensor_url=settings.sensor_api_url,
        config_url=settings.plant_config_api_url,
        timeout=settings.upstream_timeout,
        tray_prefix=settings.tray_id_prefix,
    )
    store = build_record_store(settings)
    return ReconciliationService(
        upstream=upstream,
        store=store,
        reconciler=Reconciler(),
        tray_prefix=settings.tray_id_prefix,
    )
