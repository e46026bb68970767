"""Cart model."""

from __future__ import annotations

import enum
import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from cartfleet.models._base import Timestamp

_logger = logging.getLogger(__name__)


class CartStatus(enum.StrEnum):
    """Lifecycle state of a cart.

    Values the store sends that have no mapped member resolve to
    ``ACTIVE`` with a warning instead of raising ``ValueError``.
    """

    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    """Out of service while being repaired."""
    RETIRED = "retired"

    @classmethod
    def _missing_(cls, value: object) -> CartStatus:
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", " ")
            if normalized == "out of service":
                return cls.MAINTENANCE
            for member in cls:
                if member.value == normalized:
                    return member
        _logger.warning("Invalid cart status: %r, defaulting to %r", value, cls.ACTIVE.value)
        return cls.ACTIVE

    @property
    def is_terminal(self) -> bool:
        """Whether the cart is out of service or retired."""
        return self in (CartStatus.MAINTENANCE, CartStatus.RETIRED)


class Cart(BaseModel):
    """A shopping cart tracked by a store.

    Accepts both the snake_case columns of the ``carts`` table and the
    camelCase keys used by front-end payloads.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: str = Field(default="", validation_alias=AliasChoices("id"))
    """Row identifier (UUID)."""
    qr_code: str = Field(default="", validation_alias=AliasChoices("qr_code", "qrCode", "rfidTag"))
    """QR code / RFID tag printed on the cart."""
    store: str = Field(default="", validation_alias=AliasChoices("store"))
    """Store display name."""
    store_id: str = Field(default="", validation_alias=AliasChoices("store_id", "storeId"))
    """Owning store identifier."""
    status: CartStatus = Field(default=CartStatus.ACTIVE, validation_alias=AliasChoices("status"))
    last_maintenance: Timestamp = Field(
        default=None,
        validation_alias=AliasChoices("last_maintenance", "lastMaintenance"),
    )
    """When the cart was last inspected or serviced."""
    created_at: Timestamp = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: Timestamp = Field(default=None, validation_alias=AliasChoices("updated_at", "updatedAt"))
    issues: list[str] = Field(default_factory=list, validation_alias=AliasChoices("issues"))
    """Open issue descriptions."""
    maintenance_history: list[dict[str, Any]] = Field(
        default_factory=list,
        validation_alias=AliasChoices("maintenance_history", "maintenanceHistory"),
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Full row for access to additional columns."""

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        return merged

    @field_validator("issues", "maintenance_history", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> CartStatus:
        if value is None:
            return CartStatus.ACTIVE
        return CartStatus(value)

    @field_validator("id", "qr_code", "store", "store_id", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    def to_row(self, *, now: datetime | None = None) -> dict[str, Any]:
        """Map to a ``carts`` insert/update payload.

        ``last_maintenance`` is never written as null; *now* (default:
        current UTC time) stands in when the cart has none.
        """
        last_maintenance = self.last_maintenance or now or datetime.now(UTC)
        return {
            "qr_code": self.qr_code,
            "store": self.store,
            "store_id": self.store_id,
            "status": self.status.value,
            "last_maintenance": last_maintenance.isoformat(),
            "issues": list(self.issues),
            "maintenance_history": list(self.maintenance_history),
        }
