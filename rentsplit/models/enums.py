"""Enum definitions for calculation methods and validation outcomes."""

from enum import Enum


class CalculationMethod(str, Enum):
    """Strategy used to split the electricity bill among tenants."""

    SIMPLE_AVERAGE = "simple_average"
    LAYERED_PRECISE = "layered_precise"

    @property
    def display_name(self) -> str:
        return {
            CalculationMethod.SIMPLE_AVERAGE: "Simple Average Method",
            CalculationMethod.LAYERED_PRECISE: "Layered Precise Method",
        }[self]

    @property
    def description(self) -> str:
        return {
            CalculationMethod.SIMPLE_AVERAGE: "Easy understanding and similar usage patterns",
            CalculationMethod.LAYERED_PRECISE: "Maximum fairness and TNB-compliant calculations",
        }[self]


class PricingMode(str, Enum):
    """How a tenant's sub-metered kWh are priced."""

    MARGINAL = "marginal"  # tier 1 energy + capacity + network, minus incentive
    AVERAGE = "average"  # bill total / total usage


class ValidationCode(str, Enum):
    """Named pre-flight validation failures."""

    NO_ACTIVE_TENANTS = "no_active_tenants"
    INVALID_METER_READING = "invalid_meter_reading"
    USAGE_MISMATCH = "usage_mismatch"
    NEGATIVE_USAGE = "negative_usage"
    AC_EXCEEDS_TOTAL = "ac_exceeds_total"
    INVALID_PERIOD = "invalid_period"
