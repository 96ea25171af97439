"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.schemas import (
    FieldError,
    FloodRiskAggregate,
    IngestAck,
    SensorReading,
    SensorReadingIn,
    ValidationErrorResponse,
)
from datastore.base import StoreError
from services.readings import ReadingService, build_default_service

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service() -> ReadingService:
    return build_default_service()


def _store_failure(endpoint: str, message: str) -> HTTPException:
    logger.exception(message, extra={"endpoint": endpoint})
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report every violated field as a 400 before anything reaches the store."""
    errors = []
    for error in exc.errors():
        # Malformed JSON is located by character offset, which is not a field.
        location = [
            part for part in error.get("loc", ()) if isinstance(part, str) and part != "body"
        ]
        errors.append(
            FieldError(field=".".join(location) or "body", message=error.get("msg", "Invalid value"))
        )
    logger.info(
        "Rejected request",
        extra={"endpoint": request.url.path, "error_count": len(errors)},
    )
    payload = ValidationErrorResponse(errors=errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload.model_dump())


@router.post(
    "/api/sensor-data",
    response_model=IngestAck,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ValidationErrorResponse}},
    summary="Store one reading posted by a sensor node.",
)
def ingest_reading(
    reading: SensorReadingIn,
    service: ReadingService = Depends(get_service),
) -> IngestAck:
    try:
        service.ingest(reading)
    except StoreError as exc:
        raise _store_failure("sensor-data", "Failed to store sensor data") from exc
    return IngestAck()


@router.get(
    "/api/latest-readings",
    response_model=List[SensorReading],
    summary="Most recent readings across all nodes, newest first.",
)
def latest_readings(service: ReadingService = Depends(get_service)) -> List[SensorReading]:
    try:
        return service.latest_readings()
    except StoreError as exc:
        raise _store_failure("latest-readings", "Failed to fetch latest readings") from exc


@router.get(
    "/api/node-history/{node_id}",
    response_model=List[SensorReading],
    summary="Most recent readings for one node, newest first.",
)
def node_history(
    node_id: str,
    service: ReadingService = Depends(get_service),
) -> List[SensorReading]:
    try:
        return service.node_history(node_id)
    except StoreError as exc:
        raise _store_failure("node-history", "Failed to fetch node history") from exc


@router.get(
    "/api/flood-risk",
    response_model=List[FloodRiskAggregate],
    summary="Per-node flood risk over the last 24 hours, most severe first.",
)
def flood_risk(service: ReadingService = Depends(get_service)) -> List[FloodRiskAggregate]:
    try:
        return service.flood_risk()
    except StoreError as exc:
        raise _store_failure("flood-risk", "Failed to fetch flood risk data") from exc


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Liveness message for devices and operators.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"message": "FloodNode Backend API - Ready to receive sensor data"}
