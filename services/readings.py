"""Ingestion and query orchestration over the reading store."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, List

from app.schemas import FloodRiskAggregate, SensorReading, SensorReadingIn
from datastore.base import ReadingStore, StoreError
from datastore.factory import build_default_store
from services.aggregator import Aggregator
from services.risk import classify_rain

logger = logging.getLogger(__name__)

LATEST_LIMIT = 20
NODE_HISTORY_LIMIT = 50
RISK_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadingService:
    """Coordinates store access and flood-risk derivation.

    Store failures surface as ``StoreError``; nothing here retries.
    """

    def __init__(
        self,
        store: ReadingStore,
        aggregator: Aggregator,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self._clock = clock

    def ingest(self, reading: SensorReadingIn) -> SensorReading:
        stored = self.store.add(reading)
        logger.info(
            "Stored sensor reading",
            extra={"node_id": reading.node_id, "store": self.store.name},
        )
        return stored

    def latest_readings(self) -> List[SensorReading]:
        return self.store.latest(LATEST_LIMIT)

    def node_history(self, node_id: str) -> List[SensorReading]:
        return self.store.by_node(node_id, NODE_HISTORY_LIMIT)

    def flood_risk(self) -> List[FloodRiskAggregate]:
        """Summarize each node active in the trailing window, most severe first."""
        cutoff = self._clock() - RISK_WINDOW
        summaries = self.aggregator.aggregate(self.store.since(cutoff))

        results = [
            FloodRiskAggregate(
                node_id=summary.node_id,
                total_readings=summary.row_count,
                avg_rain_analog=summary.avg_rain_analog,
                avg_water_distance=summary.avg_water_distance,
                last_reading_time=summary.last_reading_time,
                max_flood_status_level=int(classify_rain(summary.avg_rain_analog)),
            )
            for summary in summaries.values()
        ]
        results.sort(key=lambda item: item.max_flood_status_level, reverse=True)
        logger.debug("Computed flood risk", extra={"row_count": len(results)})
        return results

    def check_store(self) -> bool:
        try:
            self.store.ping()
        except StoreError:
            logger.warning(
                "Reading store is not reachable",
                exc_info=True,
                extra={"store": self.store.name},
            )
            return False
        logger.info("Reading store connected", extra={"store": self.store.name})
        return True

    def shutdown(self) -> None:
        self.store.close()


@lru_cache
def build_default_service() -> ReadingService:
    """Factory that wires the service with the configured store."""
    return ReadingService(store=build_default_store(), aggregator=Aggregator())
