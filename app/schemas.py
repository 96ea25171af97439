"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

LABEL_MAX_LENGTH = 50


def _require_number(value: Any) -> Any:
    # bool is an int subclass; devices sending true/false are malformed.
    if isinstance(value, bool):
        raise ValueError("Input should be a valid number")
    return value


Label = Annotated[str, Field(min_length=1, max_length=LABEL_MAX_LENGTH)]
Numeric = Annotated[float, BeforeValidator(_require_number), Field(allow_inf_nan=False)]


class SensorReadingIn(BaseModel):
    """Payload posted by a sensor node for a single observation."""

    node_id: Label
    rain_analog: Numeric
    rain_intensity: Label
    water_distance_cm: Numeric
    flood_status: Label


class SensorReading(SensorReadingIn):
    """A stored observation, including the fields assigned by the store."""

    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    created_at: datetime


class IngestAck(BaseModel):
    message: str = "Sensor data received and stored successfully"


class FieldError(BaseModel):
    """One violated field in a rejected submission."""

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    errors: List[FieldError] = Field(default_factory=list)


class FloodRiskAggregate(BaseModel):
    """Per-node summary over the trailing flood-risk window."""

    node_id: str
    total_readings: int = Field(..., ge=1)
    avg_rain_analog: float
    avg_water_distance: float
    last_reading_time: datetime
    max_flood_status_level: int = Field(..., ge=1, le=4)
