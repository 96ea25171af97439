from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from dashboard.config import DEFAULT_POLL_INTERVAL
from dashboard.projections import (
    PLACEHOLDER_NODE_RISKS,
    PLACEHOLDER_READINGS,
    chart_series,
    node_risks,
    status_distribution,
)
from datastore.base import StoreError
from services.readings import ReadingService, build_default_service


logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_service() -> ReadingService:
    return build_default_service()


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
def ui_index(
    request: Request,
    service: ReadingService = Depends(get_service),
) -> HTMLResponse:
    try:
        readings = [item.model_dump(mode="json") for item in service.latest_readings()]
        risks = node_risks(item.model_dump(mode="json") for item in service.flood_risk())
        last_updated = datetime.now(timezone.utc)
        stale = False
    except StoreError:
        logger.warning("Rendering placeholder dashboard", exc_info=True, extra={"endpoint": "ui"})
        readings = PLACEHOLDER_READINGS
        risks = PLACEHOLDER_NODE_RISKS
        last_updated = None
        stale = True

    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "latest": readings[0] if readings else None,
            "series": chart_series(readings, timezone.utc),
            "distribution": status_distribution(readings),
            "node_risks": risks,
            "last_updated": last_updated,
            "stale": stale,
            "refresh_seconds": int(DEFAULT_POLL_INTERVAL),
        },
    )
