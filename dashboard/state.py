from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx

from dashboard.client import ApiClient
from dashboard.projections import (
    PLACEHOLDER_NODE_RISKS,
    PLACEHOLDER_READINGS,
    NodeRisk,
    node_risks,
)

logger = logging.getLogger(__name__)


class DashboardState:
    """Last data the dashboard successfully displayed.

    A failed refresh leaves the previous data and ``last_updated`` untouched;
    before the first success the placeholder dataset is shown instead.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self.readings: List[Dict[str, Any]] = []
        self.node_risks: List[NodeRisk] = []
        self.last_updated: Optional[datetime] = None
        self.using_placeholder = False

    @property
    def latest_reading(self) -> Optional[Dict[str, Any]]:
        return self.readings[0] if self.readings else None

    @property
    def loaded(self) -> bool:
        return self.last_updated is not None

    def refresh(self, client: ApiClient) -> bool:
        try:
            readings = client.latest_readings()
            risks = node_risks(client.flood_risk())
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Dashboard refresh failed", extra={"reason": str(exc) or type(exc).__name__})
            if not self.loaded:
                self.readings = [dict(item) for item in PLACEHOLDER_READINGS]
                self.node_risks = list(PLACEHOLDER_NODE_RISKS)
                self.using_placeholder = True
            return False

        self.readings = readings
        self.node_risks = risks
        self.using_placeholder = False
        self.last_updated = self._clock()
        return True
