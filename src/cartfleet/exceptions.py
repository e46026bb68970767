"""Custom exception hierarchy for cartfleet."""

from __future__ import annotations


class CartFleetError(Exception):
    """Base exception for all cartfleet errors."""


class CartFleetConfigError(CartFleetError):
    """Invalid or missing configuration."""


class CartFleetTransportError(CartFleetError):
    """HTTP-level failure (network, 5xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)

    @property
    def status(self) -> int | None:
        """Alias of ``status_code`` matching the backing store's error shape."""
        return self.status_code


class CartFleetTimeoutError(CartFleetError):
    """A single attempt exceeded its deadline.

    The wrapped operation is not cancelled; its eventual result is
    discarded.  The message always contains ``"timed out"`` so the
    failure classifies as transient.
    """

    def __init__(self, timeout_ms: float) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Request timed out after {timeout_ms:g}ms")


class ServiceUnavailableError(CartFleetError):
    """Circuit breaker is open; the call was short-circuited.

    Never retried by :class:`~cartfleet.resilience.ResilientCaller`.
    """


class CartFleetApiError(CartFleetError):
    """The backing store returned an application-level error."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class CartNotFoundError(CartFleetApiError):
    """No cart matched the requested id."""
