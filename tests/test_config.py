"""Tests for environment-driven settings."""

from decimal import Decimal

import pytest

from rentsplit.core.config import Settings, TariffRates


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.PROJECT_NAME == "RentSplit"
        assert settings.USAGE_MISMATCH_TOLERANCE_KWH == Decimal("1.0")
        assert settings.TARIFF == TariffRates()

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("USAGE_MISMATCH_TOLERANCE_KWH", "2.5")
        monkeypatch.setenv("TARIFF__sst_tax_rate", "0.06")

        settings = Settings(_env_file=None)

        assert settings.USAGE_MISMATCH_TOLERANCE_KWH == Decimal("2.5")
        assert settings.TARIFF.sst_tax_rate == Decimal("0.06")
        assert settings.TARIFF.energy_rate_tier1 == Decimal("0.2703")


class TestTariffRates:
    def test_base_variable_rate(self) -> None:
        assert TariffRates().base_variable_rate == Decimal("0.4443")
