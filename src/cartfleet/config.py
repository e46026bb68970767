"""Client configuration for cartfleet."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from cartfleet._constants import (
    BACKOFF_MULTIPLIER,
    BREAKER_THRESHOLD,
    MAX_RETRIES,
    REQUEST_TIMEOUT_MS,
    RETRY_DELAY_MS,
)
from cartfleet.exceptions import CartFleetConfigError


def _env_number(env: Mapping[str, str], key: str, cast: type) -> Any:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise CartFleetConfigError(f"{key} must be a {cast.__name__}, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    """Retry, timeout and circuit-breaker settings for remote calls.

    Parameters
    ----------
    max_retries : int
        Additional attempts allowed after the first one fails.
    initial_delay_ms : float
        Backoff delay before the first retry, in milliseconds.
    backoff_multiplier : float
        Factor applied to the delay after every retry.
    timeout_ms : float
        Per-attempt deadline in milliseconds.
    breaker_threshold : int
        Number of recorded transient-failure retries after which the next
        qualifying failure short-circuits with ``ServiceUnavailableError``.
    """

    max_retries: int = MAX_RETRIES
    initial_delay_ms: float = RETRY_DELAY_MS
    backoff_multiplier: float = BACKOFF_MULTIPLIER
    timeout_ms: float = REQUEST_TIMEOUT_MS
    breaker_threshold: int = BREAKER_THRESHOLD

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise CartFleetConfigError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay_ms < 0:
            raise CartFleetConfigError(f"initial_delay_ms must be >= 0, got {self.initial_delay_ms}")
        if self.backoff_multiplier < 1:
            raise CartFleetConfigError(f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}")
        if self.timeout_ms <= 0:
            raise CartFleetConfigError(f"timeout_ms must be > 0, got {self.timeout_ms}")
        if self.breaker_threshold < 1:
            raise CartFleetConfigError(f"breaker_threshold must be >= 1, got {self.breaker_threshold}")


@dataclasses.dataclass(frozen=True)
class CartFleetConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Project URL of the hosted backing store (without ``/rest/v1``).
    api_key : str
        Public (anon) API key sent as the ``apikey`` header.
    access_token : str or None
        User access token for row-level security.  Falls back to
        ``api_key`` for the ``Authorization`` header when unset.
    retry : RetryPolicy
        Resilience settings shared by every call made through the client.
    """

    base_url: str
    api_key: str
    access_token: str | None = None
    retry: RetryPolicy = dataclasses.field(default_factory=RetryPolicy)

    @classmethod
    def from_env(cls, **overrides: Any) -> CartFleetConfig:
        """Create configuration from environment variables.

        Reads ``CARTFLEET_URL`` and ``CARTFLEET_API_KEY`` plus the optional
        ``CARTFLEET_ACCESS_TOKEN`` and retry tuning variables. Explicit
        keyword arguments override environment values.

        Raises
        ------
        CartFleetConfigError
            If the URL or API key is missing, or a numeric variable does
            not parse.
        """
        env = os.environ

        retry_kwargs: dict[str, Any] = {}
        _ENV_RETRY_MAP = {
            "CARTFLEET_MAX_RETRIES": ("max_retries", int),
            "CARTFLEET_INITIAL_DELAY_MS": ("initial_delay_ms", float),
            "CARTFLEET_BACKOFF_MULTIPLIER": ("backoff_multiplier", float),
            "CARTFLEET_TIMEOUT_MS": ("timeout_ms", float),
            "CARTFLEET_BREAKER_THRESHOLD": ("breaker_threshold", int),
        }
        for env_key, (field_name, cast) in _ENV_RETRY_MAP.items():
            val = _env_number(env, env_key, cast)
            if val is not None:
                retry_kwargs[field_name] = val

        retry_overrides = overrides.pop("retry", None)
        if isinstance(retry_overrides, dict):
            retry_kwargs.update(retry_overrides)
        elif isinstance(retry_overrides, RetryPolicy):
            retry_kwargs = dataclasses.asdict(retry_overrides)

        config_kwargs: dict[str, Any] = {"retry": RetryPolicy(**retry_kwargs)}
        _ENV_CONFIG_MAP = {
            "CARTFLEET_URL": "base_url",
            "CARTFLEET_API_KEY": "api_key",
            "CARTFLEET_ACCESS_TOKEN": "access_token",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        config_kwargs.update(overrides)

        for required in ("base_url", "api_key"):
            if not config_kwargs.get(required):
                raise CartFleetConfigError(f"Missing required setting: {required}")
        config_kwargs["base_url"] = str(config_kwargs["base_url"]).rstrip("/")

        return cls(**config_kwargs)
