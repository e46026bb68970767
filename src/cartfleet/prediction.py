"""Heuristic maintenance-risk scoring for carts.

The score is a weighted sum of three factors, each clamped to ``[0, 1]``:

* age: whole days since the last inspection (or since the cart was
  created) over a 30-day threshold, weight 0.4
* open issues: ``count / 3``, weight 0.3
* high-severity open issues: ``count / 2``, weight 0.3

A small symmetric jitter (``+/-0.05``) is added so that otherwise identical
carts do not all receive the same score.  It is the only non-deterministic
term; pass an ``rng`` whose ``uniform()`` returns ``0.0`` for reproducible
scores.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Protocol

from cartfleet._constants import (
    AGE_WEIGHT,
    ISSUE_SATURATION,
    ISSUE_WEIGHT,
    JITTER_AMPLITUDE,
    MAINTENANCE_THRESHOLD_DAYS,
    PREDICTION_FLOOR,
    SEVERITY_SATURATION,
    SEVERITY_WEIGHT,
)
from cartfleet.models._base import parse_timestamp
from cartfleet.models.cart import Cart
from cartfleet.models.prediction import MaintenancePrediction

_logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """The subset of :class:`random.Random` used for jitter."""

    def uniform(self, a: float, b: float) -> float: ...


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _days_between(start: datetime, end: datetime) -> int:
    return max(0, (end - start).days)


class MaintenancePredictor:
    """Score carts for maintenance risk.

    Parameters
    ----------
    rng : RandomSource, optional
        Source of jitter.  Defaults to a fresh :class:`random.Random`.
    clock : callable, optional
        Returns the current time as an aware datetime.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._rng: RandomSource = rng if rng is not None else random.Random()
        self._clock = clock or (lambda: datetime.now(UTC))

    def predict(
        self,
        cart: Cart,
        last_inspected_at: datetime | str | None = None,
        open_issue_count: int = 0,
        high_severity_open_issue_count: int = 0,
    ) -> MaintenancePrediction:
        """Compute the maintenance prediction for *cart*.

        Never raises: a missing or unparseable inspection time falls back
        to the cart's creation time, and then to *now* (age factor 0).
        """
        now = parse_timestamp(self._clock()) or datetime.now(UTC)
        if cart.status.is_terminal:
            return MaintenancePrediction(maintenance_probability=0.0, calculated_at=now)

        reference = parse_timestamp(last_inspected_at) or cart.created_at
        days_elapsed = _days_between(reference, now) if reference is not None else 0
        age_factor = _clamp(days_elapsed / MAINTENANCE_THRESHOLD_DAYS)
        issue_factor = _clamp(max(open_issue_count or 0, 0) / ISSUE_SATURATION)
        severity_factor = _clamp(max(high_severity_open_issue_count or 0, 0) / SEVERITY_SATURATION)

        probability = AGE_WEIGHT * age_factor + ISSUE_WEIGHT * issue_factor + SEVERITY_WEIGHT * severity_factor
        probability = _clamp(probability + self._rng.uniform(-JITTER_AMPLITUDE, JITTER_AMPLITUDE))

        days_until: int | None = None
        if probability > PREDICTION_FLOOR:
            days_until = max(1, _round_half_up(MAINTENANCE_THRESHOLD_DAYS * (1 - probability)))

        return MaintenancePrediction(
            maintenance_probability=probability,
            days_until_maintenance=days_until,
            calculated_at=now,
        )

    def predict_fleet(self, carts: Iterable[Cart]) -> dict[str, MaintenancePrediction]:
        """Predict every cart, keyed by cart id.

        Uses ``last_maintenance`` as the inspection time and the length of
        ``issues`` as the open issue count.  Carts without an id cannot be
        keyed and are skipped with a warning.
        """
        predictions: dict[str, MaintenancePrediction] = {}
        for cart in carts:
            if not cart.id:
                _logger.warning("Skipping cart without an id (qr_code=%r)", cart.qr_code)
                continue
            predictions[cart.id] = self.predict(cart, cart.last_maintenance, open_issue_count=len(cart.issues))
        return predictions


_default_predictor = MaintenancePredictor()


def predict(
    cart: Cart,
    last_inspected_at: datetime | str | None = None,
    open_issue_count: int = 0,
    high_severity_open_issue_count: int = 0,
) -> MaintenancePrediction:
    """Score *cart* with the module-level predictor."""
    return _default_predictor.predict(
        cart,
        last_inspected_at,
        open_issue_count,
        high_severity_open_issue_count,
    )


def predict_fleet(carts: Iterable[Cart]) -> dict[str, MaintenancePrediction]:
    """Score many carts with the module-level predictor."""
    return _default_predictor.predict_fleet(carts)
