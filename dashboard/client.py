from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from dashboard.config import DashboardConfig


class ApiClient:
    """Minimal HTTP client for the FloodNode API.

    Transport and status failures propagate as ``httpx.HTTPError``.
    """

    def __init__(
        self,
        config: DashboardConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url, timeout=config.timeout, transport=transport
        )

    def close(self) -> None:
        self._client.close()

    def latest_readings(self) -> List[Dict[str, Any]]:
        return self._get_list("/api/latest-readings")

    def flood_risk(self) -> List[Dict[str, Any]]:
        return self._get_list("/api/flood-risk")

    def node_history(self, node_id: str) -> List[Dict[str, Any]]:
        return self._get_list(f"/api/node-history/{quote(node_id, safe='')}")

    def submit_reading(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Post one reading; returns the field errors when it is rejected."""
        response = self._client.post("/api/sensor-data", json=payload)
        if response.status_code == 400:
            return list(response.json().get("errors") or [])
        response.raise_for_status()
        return []

    def _get_list(self, path: str) -> List[Dict[str, Any]]:
        response = self._client.get(path)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, list):
            raise httpx.DecodingError(f"Expected a JSON array from {path}.", request=response.request)
        return payload
