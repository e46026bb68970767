"""cartfleet - Async Python client and maintenance scoring for shopping-cart fleets."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cartfleet")
except PackageNotFoundError:
    __version__ = "0+local"
from cartfleet.client import CartFleetClient
from cartfleet.config import CartFleetConfig, RetryPolicy
from cartfleet.exceptions import (
    CartFleetApiError,
    CartFleetConfigError,
    CartFleetError,
    CartFleetTimeoutError,
    CartFleetTransportError,
    CartNotFoundError,
    ServiceUnavailableError,
)
from cartfleet.models import Cart, CartStatus, MaintenancePrediction, RiskLevel
from cartfleet.prediction import MaintenancePredictor, predict, predict_fleet
from cartfleet.resilience import ResilientCaller, RetryState, is_transient, with_timeout

__all__ = [
    "__version__",
    "Cart",
    "CartFleetApiError",
    "CartFleetClient",
    "CartFleetConfig",
    "CartFleetConfigError",
    "CartFleetError",
    "CartFleetTimeoutError",
    "CartFleetTransportError",
    "CartNotFoundError",
    "CartStatus",
    "MaintenancePrediction",
    "MaintenancePredictor",
    "ResilientCaller",
    "RetryPolicy",
    "RetryState",
    "RiskLevel",
    "ServiceUnavailableError",
    "is_transient",
    "predict",
    "predict_fleet",
    "with_timeout",
]
