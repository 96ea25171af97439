"""Reading store backed by a Supabase (PostgREST) table."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.schemas import SensorReading, SensorReadingIn
from datastore.base import StoreError

logger = logging.getLogger(__name__)

_ORDER_NEWEST_FIRST = "created_at.desc,id.desc"
_ORDER_OLDEST_FIRST = "created_at.asc,id.asc"
DEFAULT_PAGE_SIZE = 1000


class SupabaseReadingStore:
    """Reads and appends rows through the PostgREST interface at ``/rest/v1``.

    ``id`` and ``created_at`` are assigned by the database defaults.
    """

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "sensor_readings",
        timeout: float = 10.0,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.name = table
        self.page_size = page_size
        self._path = f"/{table}"
        self._client = httpx.Client(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def add(self, reading: SensorReadingIn) -> SensorReading:
        rows = self._request(
            "POST",
            json=[reading.model_dump()],
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise StoreError(f"Insert into {self.name!r} returned no row.")
        return rows[0]

    def latest(self, limit: int) -> List[SensorReading]:
        return self._request(
            "GET",
            params={"select": "*", "order": _ORDER_NEWEST_FIRST, "limit": str(limit)},
        )

    def by_node(self, node_id: str, limit: int) -> List[SensorReading]:
        return self._request(
            "GET",
            params={
                "select": "*",
                "node_id": f"eq.{node_id}",
                "order": _ORDER_NEWEST_FIRST,
                "limit": str(limit),
            },
        )

    def since(self, cutoff: datetime) -> List[SensorReading]:
        """Return every row created at or after ``cutoff``, newest first.

        PostgREST caps each response at its ``db-max-rows`` setting, so the
        window is read oldest first in pages until the ``Content-Range``
        total is reached. Rows inserted while paging land after the last page.
        """
        rows: List[SensorReading] = []
        while True:
            response = self._send(
                "GET",
                params={
                    "select": "*",
                    "created_at": f"gte.{cutoff.isoformat()}",
                    "order": _ORDER_OLDEST_FIRST,
                    "limit": str(self.page_size),
                    "offset": str(len(rows)),
                },
                headers={"Prefer": "count=exact"},
            )
            page = self._parse(response)
            rows.extend(page)
            total = _content_range_total(response.headers.get("Content-Range"))
            if not page:
                break
            if total is not None:
                if len(rows) >= total:
                    break
            elif len(page) < self.page_size:
                break
        rows.reverse()
        logger.debug("Read reading window", extra={"store": self.name, "row_count": len(rows)})
        return rows

    def ping(self) -> None:
        self._send("GET", params={"select": "id", "limit": "1"})

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> List[SensorReading]:
        return self._parse(self._send(method, params=params, json=json, headers=headers))

    def _send(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            response = self._client.request(
                method, self._path, params=params, json=json, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StoreError(
                f"{method} {self.name!r} failed with status {exc.response.status_code}: "
                f"{exc.response.text.strip() or 'no detail'}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"{method} {self.name!r} failed: {exc}") from exc
        return response

    def _parse(self, response: httpx.Response) -> List[SensorReading]:
        try:
            payload = response.json()
            if not isinstance(payload, list):
                raise ValueError("expected a JSON array of rows")
            return [SensorReading.model_validate(row) for row in payload]
        except (ValueError, ValidationError) as exc:
            raise StoreError(f"Unexpected payload from {self.name!r}: {exc}") from exc


def _content_range_total(value: Optional[str]) -> Optional[int]:
    # "0-999/2880", "*/0" or "0-999/*" when the count is unknown.
    if not value or "/" not in value:
        return None
    total = value.rsplit("/", 1)[1].strip()
    return int(total) if total.isdigit() else None
