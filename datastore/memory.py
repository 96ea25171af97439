from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Callable, List, Optional

from app.schemas import SensorReading, SensorReadingIn
from datastore.base import StoreError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryReadingStore:

    def __init__(
        self,
        name: str,
        persistence_path: Optional[Path] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.name = name
        self.persistence_path = persistence_path
        self._clock = clock
        self._rows: List[SensorReading] = []
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def add(self, reading: SensorReadingIn) -> SensorReading:
        with self._lock:
            created_at = self._clock()
            if self._rows and created_at < self._rows[-1].created_at:
                created_at = self._rows[-1].created_at
            next_id = self._rows[-1].id + 1 if self._rows else 1
            row = SensorReading(id=next_id, created_at=created_at, **reading.model_dump())
            self._rows.append(row)
            try:
                self._persist()
            except OSError as exc:
                self._rows.pop()
                raise StoreError(f"Could not persist reading to {self.persistence_path}") from exc
            return row

    def latest(self, limit: int) -> List[SensorReading]:
        with self._lock:
            return self._rows[::-1][:limit]

    def by_node(self, node_id: str, limit: int) -> List[SensorReading]:
        with self._lock:
            return [row for row in reversed(self._rows) if row.node_id == node_id][:limit]

    def since(self, cutoff: datetime) -> List[SensorReading]:
        """Return rows created at or after ``cutoff``, newest first."""

        with self._lock:
            return [row for row in reversed(self._rows) if row.created_at >= cutoff]

    def ping(self) -> None:
        return None

    def close(self) -> None:
        return None

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = [row.model_dump(mode="json") for row in self._rows]
        self.persistence_path.write_text(json.dumps(payload, indent=2))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        # An unreadable file is left in place, never replaced with an empty table.
        try:
            raw = self.persistence_path.read_text() or "[]"
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("expected a JSON array of readings")
            self._rows = [SensorReading.model_validate(payload) for payload in data]
        except (OSError, ValueError) as exc:
            raise StoreError(f"Could not load readings from {self.persistence_path}") from exc
