"""Chart-ready projections of API payloads.

Everything here works on the plain JSON dictionaries returned by the API so
the terminal dashboard and the ``/ui`` page render identical numbers.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional

RISK_DIVISOR = 40
MAX_RISK_PERCENT = 100

STATUS_NORMAL = "NORMAL"
STATUS_RAIN_ALERT = "RAIN ALERT"
STATUS_FLOOD_RISK = "FLOOD RISK"
STATUS_CRITICAL = "CRITICAL FLOOD"


@dataclass(frozen=True)
class ChartPoint:
    time: str
    rain: float
    distance: float
    status: str


@dataclass(frozen=True)
class NodeRisk:
    name: str
    risk: int
    status: str


def parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        candidate = value.strip()
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_time(value: Any, tz: Optional[tzinfo] = None) -> str:
    """Render a timestamp as ``HH:MM`` in ``tz`` (local time when omitted)."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return "--:--"
    return parsed.astimezone(tz).strftime("%H:%M")


def chart_series(readings: Iterable[Mapping[str, Any]], tz: Optional[tzinfo] = None) -> List[ChartPoint]:
    """Project newest-first readings into an oldest-first series."""
    points = [
        ChartPoint(
            time=format_time(item.get("created_at"), tz),
            rain=item.get("rain_analog"),
            distance=item.get("water_distance_cm"),
            status=item.get("flood_status"),
        )
        for item in readings
    ]
    points.reverse()
    return points


def status_distribution(readings: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    return dict(Counter(item.get("flood_status") for item in readings))


def risk_percentage(avg_rain_analog: float) -> int:
    return min(MAX_RISK_PERCENT, math.floor(avg_rain_analog / RISK_DIVISOR))


def status_bucket(level: int) -> str:
    if level >= 4:
        return STATUS_CRITICAL
    if level >= 3:
        return STATUS_FLOOD_RISK
    if level >= 2:
        return STATUS_RAIN_ALERT
    return STATUS_NORMAL


def node_risks(aggregates: Iterable[Mapping[str, Any]]) -> List[NodeRisk]:
    return [
        NodeRisk(
            name=item["node_id"],
            risk=risk_percentage(float(item["avg_rain_analog"])),
            status=status_bucket(int(item["max_flood_status_level"])),
        )
        for item in aggregates
    ]


# Shown until the first successful fetch.
PLACEHOLDER_READINGS: List[Dict[str, Any]] = [
    {"id": 1, "node_id": "floodnode_01", "rain_analog": 2180, "rain_intensity": "HEAVY RAIN",
     "water_distance_cm": 9.5, "flood_status": STATUS_CRITICAL, "created_at": "2026-01-12T10:30:00Z"},
    {"id": 2, "node_id": "floodnode_01", "rain_analog": 2200, "rain_intensity": "HEAVY RAIN",
     "water_distance_cm": 10.2, "flood_status": STATUS_CRITICAL, "created_at": "2026-01-12T10:25:00Z"},
    {"id": 3, "node_id": "floodnode_01", "rain_analog": 2350, "rain_intensity": "MODERATE RAIN",
     "water_distance_cm": 15.8, "flood_status": STATUS_FLOOD_RISK, "created_at": "2026-01-12T10:20:00Z"},
    {"id": 4, "node_id": "floodnode_01", "rain_analog": 2800, "rain_intensity": "LIGHT RAIN",
     "water_distance_cm": 25.3, "flood_status": STATUS_RAIN_ALERT, "created_at": "2026-01-12T10:15:00Z"},
    {"id": 5, "node_id": "floodnode_01", "rain_analog": 3200, "rain_intensity": "NO RAIN",
     "water_distance_cm": 35.0, "flood_status": STATUS_NORMAL, "created_at": "2026-01-12T10:10:00Z"},
]

PLACEHOLDER_NODE_RISKS: List[NodeRisk] = [
    NodeRisk(name="floodnode_01", risk=85, status=STATUS_CRITICAL),
    NodeRisk(name="floodnode_02", risk=45, status=STATUS_FLOOD_RISK),
    NodeRisk(name="floodnode_03", risk=20, status=STATUS_NORMAL),
]
