"""Rain-based flood severity heuristic."""

from __future__ import annotations

from models.records import RiskLevel

TORRENTIAL_BELOW = 1800
HEAVY_BELOW = 2400
MODERATE_BELOW = 3000


def classify_rain(avg_rain_analog: float) -> RiskLevel:
    """Map an averaged raw rain value to a severity level.

    The rain sensor reads lower under heavier rain, so severity rises as the
    value falls. Lower bounds are inclusive: exactly 1800 is ``HEAVY``.
    """
    if avg_rain_analog < TORRENTIAL_BELOW:
        return RiskLevel.TORRENTIAL
    if avg_rain_analog < HEAVY_BELOW:
        return RiskLevel.HEAVY
    if avg_rain_analog < MODERATE_BELOW:
        return RiskLevel.MODERATE
    return RiskLevel.LIGHT_NONE
