"""Tests for cart parsing and row mapping."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest

from cartfleet.models import Cart, CartStatus, MaintenancePrediction, RiskLevel, parse_timestamp

ROW: dict = {
    "id": "7c1f6a2e-0000-4000-8000-000000000001",
    "qr_code": "CART-0042",
    "store": "Downtown",
    "store_id": "store-7",
    "status": "active",
    "last_maintenance": "2026-02-01T08:30:00+00:00",
    "created_at": "2025-11-15T10:00:00Z",
    "updated_at": "2026-02-01T08:30:00.123456+00:00",
    "issues": ["squeaky wheel", "bent basket"],
    "maintenance_history": [{"date": "2026-02-01", "note": "wheel replaced"}],
    "rfid_tag": "E200-3411",
}


class TestCartStatus:
    def test_known_values(self) -> None:
        assert CartStatus("maintenance") is CartStatus.MAINTENANCE
        assert CartStatus("retired") is CartStatus.RETIRED

    def test_out_of_service_spellings(self) -> None:
        assert CartStatus("out of service") is CartStatus.MAINTENANCE
        assert CartStatus("OUT_OF_SERVICE") is CartStatus.MAINTENANCE

    def test_case_insensitive(self) -> None:
        assert CartStatus("Retired") is CartStatus.RETIRED

    def test_unknown_value_falls_back_to_active(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="cartfleet.models.cart"):
            assert CartStatus("lost") is CartStatus.ACTIVE
        assert "Invalid cart status" in caplog.text

    def test_is_terminal(self) -> None:
        assert CartStatus.MAINTENANCE.is_terminal
        assert CartStatus.RETIRED.is_terminal
        assert not CartStatus.ACTIVE.is_terminal


class TestCart:
    def test_parse_database_row(self) -> None:
        cart = Cart.model_validate(ROW)

        assert cart.id == ROW["id"]
        assert cart.qr_code == "CART-0042"
        assert cart.store_id == "store-7"
        assert cart.status is CartStatus.ACTIVE
        assert cart.last_maintenance == datetime(2026, 2, 1, 8, 30, tzinfo=UTC)
        assert cart.created_at == datetime(2025, 11, 15, 10, 0, tzinfo=UTC)
        assert cart.issues == ["squeaky wheel", "bent basket"]
        assert cart.maintenance_history[0]["note"] == "wheel replaced"
        assert cart.raw["rfid_tag"] == "E200-3411"

    def test_parse_camel_case_payload(self) -> None:
        cart = Cart.model_validate(
            {
                "id": "c-1",
                "qrCode": "CART-1",
                "storeId": "store-1",
                "lastMaintenance": "2026-01-01T00:00:00Z",
                "status": "maintenance",
            }
        )

        assert cart.qr_code == "CART-1"
        assert cart.store_id == "store-1"
        assert cart.status is CartStatus.MAINTENANCE
        assert cart.last_maintenance == datetime(2026, 1, 1, tzinfo=UTC)

    def test_blank_and_null_fields(self) -> None:
        cart = Cart.model_validate(
            {"id": "c-2", "last_maintenance": "", "issues": None, "status": None, "store": None}
        )

        assert cart.last_maintenance is None
        assert cart.issues == []
        assert cart.status is CartStatus.ACTIVE
        assert cart.store == ""

    def test_invalid_status_defaults_to_active(self) -> None:
        cart = Cart.model_validate({"id": "c-3", "status": "stolen"})
        assert cart.status is CartStatus.ACTIVE

    def test_naive_timestamp_assumed_utc(self) -> None:
        cart = Cart.model_validate({"id": "c-4", "created_at": "2026-01-05T09:00:00"})
        assert cart.created_at == datetime(2026, 1, 5, 9, 0, tzinfo=UTC)

    def test_frozen(self) -> None:
        cart = Cart.model_validate(ROW)
        with pytest.raises(ValueError):
            cart.status = CartStatus.RETIRED  # type: ignore[misc]

    def test_to_row(self) -> None:
        row = Cart.model_validate(ROW).to_row()

        assert row == {
            "qr_code": "CART-0042",
            "store": "Downtown",
            "store_id": "store-7",
            "status": "active",
            "last_maintenance": "2026-02-01T08:30:00+00:00",
            "issues": ["squeaky wheel", "bent basket"],
            "maintenance_history": [{"date": "2026-02-01", "note": "wheel replaced"}],
        }

    def test_to_row_fills_missing_last_maintenance(self) -> None:
        now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        row = Cart(id="c-5", qr_code="CART-5").to_row(now=now)

        assert row["last_maintenance"] == now.isoformat()
        assert row["status"] == "active"


class TestParseTimestamp:
    @pytest.mark.parametrize("value", [None, "", "   ", "yesterday", 12345])
    def test_unusable_values(self, value: object) -> None:
        assert parse_timestamp(value) is None

    def test_converts_offset_to_utc(self) -> None:
        parsed = parse_timestamp("2026-01-01T02:00:00+02:00")
        assert parsed == datetime(2026, 1, 1, 0, 0, tzinfo=UTC)
        assert parsed is not None and parsed.utcoffset().total_seconds() == 0  # type: ignore[union-attr]


class TestMaintenancePrediction:
    def test_bounds_are_validated(self) -> None:
        with pytest.raises(ValueError):
            MaintenancePrediction(maintenance_probability=1.2)
        with pytest.raises(ValueError):
            MaintenancePrediction(maintenance_probability=0.5, days_until_maintenance=0)

    def test_needs_attention(self) -> None:
        assert MaintenancePrediction(maintenance_probability=0.5, days_until_maintenance=15).needs_attention
        assert not MaintenancePrediction(maintenance_probability=0.05).needs_attention

    @pytest.mark.parametrize(
        ("probability", "expected"),
        [
            (0.0, RiskLevel.LOW),
            (0.2499, RiskLevel.LOW),
            (0.25, RiskLevel.MEDIUM),
            (0.4999, RiskLevel.MEDIUM),
            (0.5, RiskLevel.HIGH),
            (0.7499, RiskLevel.HIGH),
            (0.75, RiskLevel.CRITICAL),
            (1.0, RiskLevel.CRITICAL),
        ],
    )
    def test_risk_level_bands(self, probability: float, expected: RiskLevel) -> None:
        assert MaintenancePrediction(maintenance_probability=probability).risk_level is expected

    def test_risk_level_is_serialized(self) -> None:
        dumped = MaintenancePrediction(maintenance_probability=0.8, days_until_maintenance=6).model_dump(mode="json")
        assert dumped["risk_level"] == "critical"
        assert dumped["maintenance_probability"] == 0.8
