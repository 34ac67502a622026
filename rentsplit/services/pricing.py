"""Per-kWh pricing of a tenant's sub-metered usage."""

from decimal import Decimal

from rentsplit.core import money
from rentsplit.core.config import TariffRates, settings
from rentsplit.core.exceptions import PreconditionViolation
from rentsplit.models.enums import PricingMode


def marginal_rate(usage_kwh: money.Number, rates: TariffRates | None = None) -> Decimal:
    """Variable rate for one tenant's usage.

    Tier 1 energy + capacity + network, plus the efficiency rebate when the
    tenant's own usage is within the incentive ceiling. Retail charge and
    taxes are bill-level and not attributed here.
    """
    rates = rates or settings.TARIFF
    rate = rates.base_variable_rate
    if money.to_decimal(usage_kwh) <= rates.efficiency_incentive_ceiling:
        rate += rates.efficiency_incentive_rate
    return rate


def marginal_cost(usage_kwh: money.Number, rates: TariffRates | None = None) -> Decimal:
    usage = money.to_decimal(usage_kwh)
    if usage <= 0:
        return money.ZERO
    return money.multiply(usage, marginal_rate(usage, rates))


def average_rate(total_amount: money.Number, total_kwh_usage: money.Number) -> Decimal:
    """Blended RM/kWh of a whole bill (0 when there was no usage). Not rounded."""
    usage = money.to_decimal(total_kwh_usage)
    if usage == 0:
        return Decimal("0")
    return money.to_decimal(total_amount) / usage


def price_usage(
    usage_kwh: money.Number,
    mode: PricingMode,
    rate: Decimal | None = None,
    rates: TariffRates | None = None,
) -> Decimal:
    """Price usage with the marginal tariff or a given blended rate."""
    if mode == PricingMode.MARGINAL:
        return marginal_cost(usage_kwh, rates)
    if rate is None:
        raise PreconditionViolation("Average pricing requires a blended rate")
    return money.multiply(usage_kwh, rate)
