"""Per-node aggregation of windowed sensor readings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable

from app.schemas import SensorReading


@dataclass
class NodeSummary:
    """Running statistics for one node's readings."""

    node_id: str
    row_count: int = 0
    rain_total: float = 0.0
    distance_total: float = 0.0
    last_reading_time: datetime | None = None

    @property
    def avg_rain_analog(self) -> float | None:
        if not self.row_count:
            return None
        return self.rain_total / self.row_count

    @property
    def avg_water_distance(self) -> float | None:
        if not self.row_count:
            return None
        return self.distance_total / self.row_count


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, readings: Iterable[SensorReading]) -> Dict[str, NodeSummary]:
        summaries: Dict[str, NodeSummary] = {}

        for reading in readings:
            summary = summaries.get(reading.node_id)
            if summary is None:
                summary = summaries[reading.node_id] = NodeSummary(node_id=reading.node_id)

            summary.row_count += 1
            summary.rain_total += reading.rain_analog
            summary.distance_total += reading.water_distance_cm

            if summary.last_reading_time is None or reading.created_at > summary.last_reading_time:
                summary.last_reading_time = reading.created_at

        return summaries
