"""Maintenance prediction model."""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from cartfleet._constants import (
    RISK_CRITICAL_THRESHOLD,
    RISK_HIGH_THRESHOLD,
    RISK_MEDIUM_THRESHOLD,
)


class RiskLevel(enum.StrEnum):
    """Coarse band of a maintenance probability, used to rank alerts."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_probability(cls, probability: float) -> RiskLevel:
        if probability >= RISK_CRITICAL_THRESHOLD:
            return cls.CRITICAL
        if probability >= RISK_HIGH_THRESHOLD:
            return cls.HIGH
        if probability >= RISK_MEDIUM_THRESHOLD:
            return cls.MEDIUM
        return cls.LOW


class MaintenancePrediction(BaseModel):
    """Computed maintenance risk for a single cart.

    Ephemeral: built on demand and never written back to the store.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    maintenance_probability: float = Field(ge=0.0, le=1.0)
    """Likelihood (0-1) that the cart needs maintenance soon."""
    days_until_maintenance: int | None = Field(default=None, ge=1)
    """Estimated days before maintenance is due; ``None`` when risk is negligible."""
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def risk_level(self) -> RiskLevel:
        """Band of :attr:`maintenance_probability`; high and critical warrant an alert."""
        return RiskLevel.from_probability(self.maintenance_probability)

    @property
    def needs_attention(self) -> bool:
        """Whether an estimate was produced at all."""
        return self.days_until_maintenance is not None
