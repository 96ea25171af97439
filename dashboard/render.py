from __future__ import annotations

from datetime import tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional

import typer

from dashboard.projections import (
    STATUS_CRITICAL,
    STATUS_FLOOD_RISK,
    STATUS_NORMAL,
    STATUS_RAIN_ALERT,
    chart_series,
    format_time,
    status_distribution,
)
from dashboard.state import DashboardState

BAR_WIDTH = 30

_STATUS_COLORS = {
    STATUS_NORMAL: typer.colors.GREEN,
    STATUS_RAIN_ALERT: typer.colors.YELLOW,
    STATUS_FLOOD_RISK: typer.colors.RED,
    STATUS_CRITICAL: typer.colors.BRIGHT_RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _bar(value: float, maximum: float) -> str:
    if maximum <= 0:
        return ""
    filled = max(0, min(BAR_WIDTH, round(BAR_WIDTH * value / maximum)))
    return "#" * filled


def render_latest(reading: Optional[Mapping[str, Any]], tz: Optional[tzinfo] = None) -> None:
    echo_heading("Latest Reading")
    if not reading:
        typer.echo("No readings yet.")
        return
    status = reading.get("flood_status")
    typer.secho(f"[{status}]", fg=_STATUS_COLORS.get(status, typer.colors.BRIGHT_RED), bold=True)
    echo_key_values(
        [
            ("time", format_time(reading.get("created_at"), tz)),
            ("node_id", reading.get("node_id")),
            ("rain_analog", reading.get("rain_analog")),
            ("rain_intensity", reading.get("rain_intensity")),
            ("water_distance", f"{reading.get('water_distance_cm')} cm"),
        ]
    )


def render_series(readings: List[Mapping[str, Any]], tz: Optional[tzinfo] = None) -> None:
    points = chart_series(readings, tz)
    echo_heading("Rain And Water Distance Over Time")
    if not points:
        typer.echo("No data.")
        return
    max_rain = max(point.rain for point in points)
    max_distance = max(point.distance for point in points)
    for point in points:
        typer.echo(
            f"  {point.time}  rain {point.rain:>7} {_bar(point.rain, max_rain):<{BAR_WIDTH}}"
            f"  distance {point.distance:>6} cm {_bar(point.distance, max_distance)}"
        )


def render_distribution(readings: List[Mapping[str, Any]]) -> None:
    echo_heading("Flood Status Distribution")
    counts = status_distribution(readings)
    if not counts:
        typer.echo("No data.")
        return
    total = sum(counts.values())
    for status, count in counts.items():
        typer.secho(
            f"  {status:<16} {count:>3} {_bar(count, total)}",
            fg=_STATUS_COLORS.get(status),
        )


def render_node_risks(state: DashboardState) -> None:
    echo_heading("Flood Risk By Node")
    if not state.node_risks:
        typer.echo("No active nodes in the last 24 hours.")
        return
    for node in state.node_risks:
        typer.secho(
            f"  {node.name:<20} {node.risk:>3}% {_bar(node.risk, 100):<{BAR_WIDTH}} {node.status}",
            fg=_STATUS_COLORS.get(node.status),
        )


def render_dashboard(state: DashboardState, tz: Optional[tzinfo] = None) -> None:
    last_updated = state.last_updated.strftime("%H:%M:%S") if state.last_updated else "never"
    echo_heading(f"FloodNode Dashboard (last updated: {last_updated})")
    typer.echo()
    render_latest(state.latest_reading, tz)
    typer.echo()
    render_series(state.readings, tz)
    typer.echo()
    render_distribution(state.readings)
    typer.echo()
    render_node_risks(state)


def render_history(node_id: str, readings: List[Dict[str, Any]], tz: Optional[tzinfo] = None) -> None:
    echo_heading(f"History for {node_id}")
    if not readings:
        typer.echo("No readings recorded for this node.")
        return
    for item in readings:
        typer.echo(
            f"  {format_time(item.get('created_at'), tz)}  rain={item.get('rain_analog')}"
            f" ({item.get('rain_intensity')})  distance={item.get('water_distance_cm')} cm"
            f"  status={item.get('flood_status')}"
        )
