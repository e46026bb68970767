"""Data models for carts and maintenance predictions."""

from cartfleet.models._base import Timestamp, parse_timestamp
from cartfleet.models.cart import Cart, CartStatus
from cartfleet.models.prediction import MaintenancePrediction, RiskLevel

__all__ = [
    "Cart",
    "CartStatus",
    "MaintenancePrediction",
    "RiskLevel",
    "Timestamp",
    "parse_timestamp",
]
