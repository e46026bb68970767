"""Translate backing-store failures into user-facing errors.

Callers show these messages directly (toasts, banners), so they name
the problem in plain words rather than echoing raw PostgREST output.
"""

from __future__ import annotations

import logging

from cartfleet._constants import (
    PG_INVALID_INPUT,
    PG_NOT_AUTHORIZED,
    PGRST_COLUMN_NOT_FOUND,
    PGRST_TABLE_NOT_FOUND,
)
from cartfleet.exceptions import (
    CartFleetApiError,
    CartFleetConfigError,
    CartFleetError,
    CartFleetTimeoutError,
    CartFleetTransportError,
    ServiceUnavailableError,
)

_logger = logging.getLogger(__name__)

_CODE_MESSAGES: dict[str, str] = {
    PGRST_TABLE_NOT_FOUND: "Database error: Table not found. Please contact support.",
    PG_NOT_AUTHORIZED: "Authentication error: Not authorized to access this resource.",
    PG_INVALID_INPUT: "Database error: Invalid input. Please contact support.",
    PGRST_COLUMN_NOT_FOUND: "Database error: Column not found. Database schema might have changed.",
}

_CONNECTIVITY_MESSAGE = (
    "Unable to connect to the server. Please check your internet connection and try again."
)

# Already user-facing; re-wrapping would lose the original type.
_PASSTHROUGH = (ServiceUnavailableError, CartFleetConfigError)


def translate_api_error(exc: BaseException, operation: str) -> CartFleetError:
    """Map *exc*, raised while *operation* a cart, to a presentable error.

    The returned exception keeps the original ``code`` and ``endpoint``
    where available; callers should ``raise ... from exc``.
    """
    _logger.error("Error %s cart: %s", operation, exc)

    if isinstance(exc, _PASSTHROUGH):
        return exc

    message = str(exc)
    code = str(getattr(exc, "code", "") or "")
    endpoint = str(getattr(exc, "endpoint", "") or "")

    unreachable = isinstance(exc, CartFleetTransportError) and exc.status_code is None
    if unreachable or isinstance(exc, CartFleetTimeoutError) or "Failed to fetch" in message or "timed out" in message:
        return CartFleetApiError(_CONNECTIVITY_MESSAGE, code=code, endpoint=endpoint)
    if code in _CODE_MESSAGES:
        return CartFleetApiError(_CODE_MESSAGES[code], code=code, endpoint=endpoint)
    if isinstance(exc, CartFleetApiError):
        return exc
    return CartFleetApiError(
        f"Server error: {message or f'Unknown error occurred during {operation}'}",
        code=code,
        endpoint=endpoint,
    )
