from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn, Optional

import httpx
import typer

from dashboard.client import ApiClient
from dashboard.config import DashboardConfig, load_config
from dashboard.poller import Poller
from dashboard.render import render_dashboard, render_history
from dashboard.state import DashboardState
from logging_config import configure_logging


@dataclass
class CLIState:
    config: DashboardConfig
    client: ApiClient


app = typer.Typer(
    help="Terminal dashboard and device simulator for the FloodNode API.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _fail(exc: httpx.HTTPError) -> NoReturn:
    detail: str | None = None
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            payload = exc.response.json()
            detail = payload.get("detail") if isinstance(payload, dict) else None
        except ValueError:
            detail = exc.response.text.strip()
        message = f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
    else:
        message = f"Request failed: {exc}"
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="FloodNode API base URL (defaults to API_BASE_URL env or http://localhost:3000).",
    ),
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        help="Seconds between dashboard refreshes (defaults to DASHBOARD_POLL_INTERVAL or 30).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging("WARNING")
    config = load_config(base_url=base_url, poll_interval=interval)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    count: int = typer.Option(
        0,
        "--count",
        "-n",
        min=0,
        help="Stop after this many refreshes (0 keeps polling until interrupted).",
    ),
    clear: bool = typer.Option(True, "--clear/--no-clear", help="Clear the screen between refreshes."),
) -> None:
    """Poll the API and redraw the dashboard on every refresh."""
    state = _get_state(ctx)
    dashboard = DashboardState()

    def refresh() -> None:
        dashboard.refresh(state.client)
        if clear:
            typer.clear()
        render_dashboard(dashboard)

    poller = Poller(refresh, interval=state.config.poll_interval, max_runs=count or None)
    try:
        with poller:
            poller.wait()
    except KeyboardInterrupt:
        typer.echo("Stopped.")
    if poller.error is not None:
        raise typer.Exit(code=1)


@app.command("snapshot")
def snapshot_command(ctx: typer.Context) -> None:
    """Fetch once and render the dashboard."""
    state = _get_state(ctx)
    dashboard = DashboardState()
    dashboard.refresh(state.client)
    render_dashboard(dashboard)


@app.command("history")
def history_command(
    ctx: typer.Context,
    node_id: str = typer.Argument(..., help="Sensor node identifier, e.g. floodnode_01."),
) -> None:
    """Show the most recent readings reported by one node."""
    state = _get_state(ctx)
    try:
        readings = state.client.node_history(node_id)
    except httpx.HTTPError as exc:
        _fail(exc)
    render_history(node_id, readings)


@app.command("send")
def send_command(
    ctx: typer.Context,
    node_id: str = typer.Option(..., "--node-id", help="Reporting node identifier."),
    rain_analog: float = typer.Option(..., "--rain", help="Raw rain sensor value (lower is heavier rain)."),
    rain_intensity: str = typer.Option(..., "--intensity", help="Rain intensity label."),
    water_distance_cm: float = typer.Option(..., "--distance", help="Distance to the water surface in cm."),
    flood_status: str = typer.Option(..., "--status", help="Flood status label."),
) -> None:
    """Submit one reading the way a sensor node does."""
    state = _get_state(ctx)
    payload = {
        "node_id": node_id,
        "rain_analog": rain_analog,
        "rain_intensity": rain_intensity,
        "water_distance_cm": water_distance_cm,
        "flood_status": flood_status,
    }
    try:
        errors = state.client.submit_reading(payload)
    except httpx.HTTPError as exc:
        _fail(exc)
    if errors:
        typer.secho("Reading rejected:", fg=typer.colors.RED, err=True)
        for error in errors:
            typer.secho(f"  - {error.get('field')}: {error.get('message')}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.secho(f"Reading stored for {node_id}.", fg=typer.colors.GREEN)
