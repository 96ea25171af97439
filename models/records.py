"""Domain models shared across services."""

from __future__ import annotations

from enum import IntEnum


class RiskLevel(IntEnum):
    """Ordinal severity estimated from a node's averaged rain value."""

    LIGHT_NONE = 1
    MODERATE = 2
    HEAVY = 3
    TORRENTIAL = 4

    @property
    def label(self) -> str:
        return _RISK_LABELS[self]


_RISK_LABELS = {
    RiskLevel.LIGHT_NONE: "LIGHT/NONE",
    RiskLevel.MODERATE: "MODERATE",
    RiskLevel.HEAVY: "HEAVY",
    RiskLevel.TORRENTIAL: "TORRENTIAL",
}
