"""Application configuration settings."""

from decimal import Decimal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class TariffRates(BaseModel):
    """TNB domestic tariff rate table (effective July 2024).

    All rates are RM per kWh unless stated otherwise. Thresholds are kWh.
    """

    model_config = {"frozen": True}

    energy_rate_tier1: Decimal = Decimal("0.2703")  # usage <= tier1 threshold
    energy_rate_tier2: Decimal = Decimal("0.3703")  # usage above tier1 threshold
    energy_tier1_threshold: Decimal = Decimal("1500")

    capacity_rate: Decimal = Decimal("0.0455")
    network_rate: Decimal = Decimal("0.1285")

    retail_charge_amount: Decimal = Decimal("10.00")  # RM per month
    retail_charge_waiver_threshold: Decimal = Decimal("600")

    efficiency_incentive_rate: Decimal = Decimal("-0.060")
    efficiency_incentive_ceiling: Decimal = Decimal("1000")

    kwtbb_tax_rate: Decimal = Decimal("0.016")
    kwtbb_exemption_threshold: Decimal = Decimal("300")
    sst_tax_rate: Decimal = Decimal("0.08")
    sst_threshold: Decimal = Decimal("600")

    @property
    def base_variable_rate(self) -> Decimal:
        """Tier 1 energy + capacity + network rate."""
        return self.energy_rate_tier1 + self.capacity_rate + self.network_rate


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_nested_delimiter="__",
        extra="ignore",
    )

    PROJECT_NAME: str = "RentSplit"

    TARIFF: TariffRates = TariffRates()

    # Validation and reconciliation tolerances
    USAGE_MISMATCH_TOLERANCE_KWH: Decimal = Decimal("1.0")
    BILL_RECONCILIATION_TOLERANCE: Decimal = Decimal("0.50")
    MIN_EXPENSE_YEAR: int = 2020

    # Method recommendation thresholds
    SIMPLE_AVERAGE_MAX_SPREAD_KWH: Decimal = Decimal("20")
    LAYERED_PRECISE_MIN_SPREAD_KWH: Decimal = Decimal("50")
    RECOMMENDATION_COST_DIFFERENCE: Decimal = Decimal("5.00")


settings = Settings()
