"""High-level async client for the cart fleet backing store."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp

from cartfleet._constants import CARTS_TABLE
from cartfleet._errors import translate_api_error
from cartfleet._transport import RestTransport, Transport
from cartfleet.config import CartFleetConfig
from cartfleet.exceptions import CartFleetApiError, CartFleetError, CartNotFoundError
from cartfleet.models.cart import Cart
from cartfleet.models.prediction import MaintenancePrediction
from cartfleet.prediction import MaintenancePredictor
from cartfleet.resilience import ResilientCaller, RetryState

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_CARTS_PATH = f"/{CARTS_TABLE}"


def _rows(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        return [row for row in payload if isinstance(row, dict)]
    if isinstance(payload, dict):
        return [payload]
    return []


class CartFleetClient:
    """Async client for cart inventory and maintenance predictions.

    Every request runs through one :class:`ResilientCaller`, so all calls
    made by a client share a single circuit breaker.

    Usage::

        async with CartFleetClient(CartFleetConfig.from_env()) as client:
            carts = await client.fetch_carts()
            predictions = await client.fetch_predictions()
    """

    def __init__(
        self,
        config: CartFleetConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        caller: ResilientCaller | None = None,
        predictor: MaintenancePredictor | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._caller = caller or ResilientCaller(config.retry, state=RetryState())
        self._predictor = predictor or MaintenancePredictor()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> CartFleetClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = RestTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    @property
    def retry_state(self) -> RetryState:
        """Failure counter backing this client's circuit breaker."""
        return self._caller.state

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise CartFleetError("Client not initialized. Use 'async with CartFleetClient(...) as client:'")
        return self._transport

    async def _call(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run *fn* with retries and translate any failure for *operation*."""
        try:
            return await self._caller.execute(fn)
        except Exception as exc:
            translated = translate_api_error(exc, operation)
            if translated is exc:
                raise
            raise translated from exc

    # ------------------------------------------------------------------
    # Carts
    # ------------------------------------------------------------------

    async def fetch_carts(self, *, store_id: str | None = None) -> list[Cart]:
        """Fetch all carts, optionally limited to one store."""
        transport = self._require_transport()
        params = {"select": "*"}
        if store_id:
            params["store_id"] = f"eq.{store_id}"

        _logger.debug("Fetching carts (store_id=%s)", store_id)
        payload = await self._call("fetching", lambda: transport.request("GET", _CARTS_PATH, params=params))
        carts = [Cart.model_validate(row) for row in _rows(payload)]
        _logger.debug("Fetched %d carts", len(carts))
        return carts

    async def fetch_cart(self, cart_id: str) -> Cart:
        """Fetch a single cart by id."""
        transport = self._require_transport()
        params = {"select": "*", "id": f"eq.{cart_id}"}
        payload = await self._call("fetching", lambda: transport.request("GET", _CARTS_PATH, params=params))
        rows = _rows(payload)
        if not rows:
            raise CartNotFoundError(f"Cart {cart_id} not found", endpoint=_CARTS_PATH)
        return Cart.model_validate(rows[0])

    async def create_cart(self, cart: Cart) -> Cart:
        """Insert *cart* and return the stored row."""
        transport = self._require_transport()
        body = cart.to_row()
        payload = await self._call("creating", lambda: transport.request("POST", _CARTS_PATH, json_body=body))
        rows = _rows(payload)
        if not rows:
            raise CartFleetApiError("Failed to create cart", endpoint=_CARTS_PATH)
        return Cart.model_validate(rows[0])

    async def update_cart(self, cart: Cart) -> Cart:
        """Write every mutable column of *cart* and return the stored row."""
        transport = self._require_transport()
        if not cart.id:
            raise ValueError("Cannot update a cart without an id")
        body = cart.to_row()
        params = {"id": f"eq.{cart.id}"}
        payload = await self._call(
            "updating",
            lambda: transport.request("PATCH", _CARTS_PATH, params=params, json_body=body),
        )
        rows = _rows(payload)
        if not rows:
            raise CartNotFoundError(f"Cart {cart.id} not found", endpoint=_CARTS_PATH)
        return Cart.model_validate(rows[0])

    async def delete_cart(self, cart_id: str) -> None:
        """Delete the cart with *cart_id*."""
        transport = self._require_transport()
        params = {"id": f"eq.{cart_id}"}
        await self._call("deleting", lambda: transport.request("DELETE", _CARTS_PATH, params=params))

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    async def fetch_predictions(self, *, store_id: str | None = None) -> dict[str, MaintenancePrediction]:
        """Fetch carts and score each one, keyed by cart id."""
        carts = await self.fetch_carts(store_id=store_id)
        return self._predictor.predict_fleet(carts)
