"""HTTP transport for the hosted REST backing store."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from cartfleet._constants import REST_PREFIX
from cartfleet._redact import redact_for_log
from cartfleet.config import CartFleetConfig
from cartfleet.exceptions import CartFleetApiError, CartFleetTransportError

_logger = logging.getLogger(__name__)

USER_AGENT = "cartfleet-python"


class Transport(Protocol):
    """Structural transport interface used by :class:`~cartfleet.client.CartFleetClient`.

    Tests pass small fakes implementing this; production uses
    :class:`RestTransport`.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> Any: ...


def _error_from_response(status: int, endpoint: str, text: str) -> Exception:
    """Build the exception for a non-2xx reply.

    5xx and 429 become :class:`CartFleetTransportError` so the retry layer
    can see the status; other statuses carry a PostgREST error body and
    become :class:`CartFleetApiError`.
    """
    body: Any = None
    try:
        body = json.loads(text) if text else None
    except json.JSONDecodeError:
        body = None
    code = ""
    message = text[:200]
    if isinstance(body, dict):
        code = str(body.get("code") or "")
        message = str(body.get("message") or message)

    if status >= 500 or status == 429:
        return CartFleetTransportError(
            f"HTTP {status} from {endpoint}: {message}",
            status_code=status,
            code=code or None,
            endpoint=endpoint,
        )
    return CartFleetApiError(
        f"HTTP {status} from {endpoint}: {message}",
        code=code,
        endpoint=endpoint,
    )


class RestTransport:
    """aiohttp transport against ``{base_url}/rest/v1``."""

    def __init__(
        self,
        config: CartFleetConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session

    def _headers(self) -> dict[str, str]:
        token = self._config.access_token or self._config.api_key
        return {
            "apikey": self._config.api_key,
            "authorization": f"Bearer {token}",
            "accept": "application/json",
            "content-type": "application/json",
            "prefer": "return=representation",
            "user-agent": USER_AGENT,
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        An empty body (e.g. ``204 No Content``) decodes to ``None``.
        """
        endpoint = f"{REST_PREFIX}{path}"
        url = f"{self._config.base_url}{endpoint}"
        headers = self._headers()

        _logger.debug(
            "%s %s params=%s headers=%s body=%s",
            method,
            url,
            dict(params or {}),
            redact_for_log(headers),
            redact_for_log(json_body),
        )

        try:
            async with self._http.request(
                method,
                url,
                params=dict(params) if params else None,
                json=json_body,
                headers=headers,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientConnectorError as exc:
            raise CartFleetTransportError(
                f"Request to {endpoint} failed: network error: {exc}",
                code="ECONNREFUSED" if isinstance(exc.os_error, ConnectionRefusedError) else None,
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise CartFleetTransportError(
                f"Request to {endpoint} failed: network error: {exc}",
                endpoint=endpoint,
            ) from exc

        if not 200 <= status < 300:
            raise _error_from_response(status, endpoint, text)

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise CartFleetTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc
