from __future__ import annotations

from datetime import datetime
from typing import List, Protocol

from app.schemas import SensorReading, SensorReadingIn


class StoreError(RuntimeError):
    """Raised when the reading store cannot be reached or a query fails."""


class ReadingStore(Protocol):
    """Append-only table of sensor observations.

    Query methods return rows newest first; rows sharing a ``created_at``
    are ordered by insertion, later inserts first.
    """

    name: str

    def add(self, reading: SensorReadingIn) -> SensorReading: ...

    def latest(self, limit: int) -> List[SensorReading]: ...

    def by_node(self, node_id: str, limit: int) -> List[SensorReading]: ...

    def since(self, cutoff: datetime) -> List[SensorReading]: ...

    def ping(self) -> None: ...

    def close(self) -> None: ...
