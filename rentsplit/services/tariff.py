"""TNB tariff calculator: itemized bill components from aggregate kWh usage."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from rentsplit.core import money
from rentsplit.core.config import TariffRates, settings
from rentsplit.core.exceptions import PreconditionViolation
from rentsplit.schemas.tariff import TariffBill, TariffBreakdownLine

logger = logging.getLogger(__name__)

SAVINGS_THRESHOLDS_KWH = (300, 600, 1000)


def _energy_charge(usage: Decimal, rates: TariffRates) -> Decimal:
    """Tiered energy charge: tier 1 rate up to the threshold, tier 2 above it."""
    tier1_usage = min(usage, rates.energy_tier1_threshold)
    tier2_usage = max(Decimal("0"), usage - rates.energy_tier1_threshold)
    return tier1_usage * rates.energy_rate_tier1 + tier2_usage * rates.energy_rate_tier2


def _retail_charge(usage: Decimal, rates: TariffRates) -> Decimal:
    if usage <= rates.retail_charge_waiver_threshold:
        return Decimal("0")
    return rates.retail_charge_amount


def _efficiency_incentive(usage: Decimal, rates: TariffRates) -> Decimal:
    # Flat rebate on the whole usage, or nothing once over the ceiling
    if usage > rates.efficiency_incentive_ceiling:
        return Decimal("0")
    return usage * rates.efficiency_incentive_rate


def _kwtbb_tax(subtotal: Decimal, usage: Decimal, rates: TariffRates) -> Decimal:
    if usage <= rates.kwtbb_exemption_threshold:
        return Decimal("0")
    return subtotal * rates.kwtbb_tax_rate


def _sst_tax(usage: Decimal, rates: TariffRates) -> Decimal:
    """SST on the usage above the threshold only, at tier 1 + capacity + network rates."""
    if usage <= rates.sst_threshold:
        return Decimal("0")
    taxable_amount = (usage - rates.sst_threshold) * rates.base_variable_rate
    return taxable_amount * rates.sst_tax_rate


def _usage(kwh_usage: money.Number) -> Decimal:
    usage = money.to_decimal(kwh_usage)
    if usage < 0:
        raise PreconditionViolation(f"kWh usage cannot be negative: {usage}")
    return usage


def compute_bill(
    kwh_usage: money.Number,
    override_total: money.Number | None = None,
    rates: TariffRates | None = None,
) -> TariffBill:
    """Reconstruct a TNB bill from total kWh usage.

    Each component is rounded to the sen before being summed, so the
    calculated total always equals the sum of the displayed components.

    Args:
        kwh_usage: Total kWh for the period (must not be negative)
        override_total: Invoiced amount that replaces the formula total for
            allocation purposes (components are still computed for display)
        rates: Tariff table; defaults to the configured one

    Returns:
        TariffBill with components and totals
    """
    rates = rates or settings.TARIFF
    usage = _usage(kwh_usage)

    energy_charge = money.round_to_sen(_energy_charge(usage, rates))
    capacity_charge = money.multiply(usage, rates.capacity_rate)
    network_charge = money.multiply(usage, rates.network_rate)
    retail_charge = money.round_to_sen(_retail_charge(usage, rates))
    efficiency_incentive = money.round_to_sen(_efficiency_incentive(usage, rates))

    subtotal = money.sum_amounts(
        [energy_charge, capacity_charge, network_charge, retail_charge, efficiency_incentive]
    )
    kwtbb_tax = money.round_to_sen(_kwtbb_tax(subtotal, usage, rates))
    sst_tax = money.round_to_sen(_sst_tax(usage, rates))
    calculated_total = money.sum_amounts([subtotal, kwtbb_tax, sst_tax])

    total_amount = calculated_total
    if override_total is not None:
        total_amount = money.round_to_sen(override_total)
        if not reconcile_bill_amount(calculated_total, total_amount):
            logger.info(
                "Invoiced total %s differs from tariff total %s for %s kWh; using invoice",
                total_amount,
                calculated_total,
                usage,
            )

    logger.debug("Computed TNB bill for %s kWh: total %s", usage, total_amount)

    return TariffBill(
        total_kwh_usage=usage,
        energy_charge=energy_charge,
        capacity_charge=capacity_charge,
        network_charge=network_charge,
        retail_charge=retail_charge,
        efficiency_incentive=efficiency_incentive,
        kwtbb_tax=kwtbb_tax,
        sst_tax=sst_tax,
        calculated_total=calculated_total,
        total_amount=total_amount,
    )


def explain_bill(
    kwh_usage: money.Number,
    rates: TariffRates | None = None,
) -> list[TariffBreakdownLine]:
    """Describe how each bill component was derived, for display on receipts."""
    rates = rates or settings.TARIFF
    usage = _usage(kwh_usage)
    bill = compute_bill(usage, rates=rates)
    subtotal = bill.subtotal

    if usage <= rates.energy_tier1_threshold:
        energy_text = f"{usage:.1f} kWh × RM {rates.energy_rate_tier1}"
    else:
        energy_text = (
            f"{rates.energy_tier1_threshold:.0f} kWh × RM {rates.energy_rate_tier1} + "
            f"{usage - rates.energy_tier1_threshold:.1f} kWh × RM {rates.energy_rate_tier2}"
        )

    if usage <= rates.retail_charge_waiver_threshold:
        retail_text = f"Waived (≤{rates.retail_charge_waiver_threshold:.0f} kWh)"
    else:
        retail_text = (
            f"RM {rates.retail_charge_amount:.2f} (>{rates.retail_charge_waiver_threshold:.0f} kWh)"
        )

    if bill.efficiency_incentive == 0:
        incentive_text = "No incentive applicable"
    else:
        incentive_text = f"{usage:.1f} kWh × RM {rates.efficiency_incentive_rate}"

    if usage <= rates.kwtbb_exemption_threshold:
        kwtbb_text = f"Exempted (≤{rates.kwtbb_exemption_threshold:.0f} kWh)"
    else:
        kwtbb_text = f"RM {subtotal:.2f} × {rates.kwtbb_tax_rate * 100:.1f}%"

    if usage <= rates.sst_threshold:
        sst_text = f"Not applicable (≤{rates.sst_threshold:.0f} kWh)"
    else:
        sst_text = (
            f"{usage - rates.sst_threshold:.1f} kWh × RM {rates.base_variable_rate} "
            f"× {rates.sst_tax_rate * 100:.1f}%"
        )

    return [
        TariffBreakdownLine(
            component="Energy Charge", amount=bill.energy_charge, calculation=energy_text
        ),
        TariffBreakdownLine(
            component="Capacity Charge",
            amount=bill.capacity_charge,
            calculation=f"{usage:.1f} kWh × RM {rates.capacity_rate}",
        ),
        TariffBreakdownLine(
            component="Network Charge",
            amount=bill.network_charge,
            calculation=f"{usage:.1f} kWh × RM {rates.network_rate}",
        ),
        TariffBreakdownLine(
            component="Retail Charge", amount=bill.retail_charge, calculation=retail_text
        ),
        TariffBreakdownLine(
            component="EE Incentive", amount=bill.efficiency_incentive, calculation=incentive_text
        ),
        TariffBreakdownLine(component="KWTBB Tax", amount=bill.kwtbb_tax, calculation=kwtbb_text),
        TariffBreakdownLine(component="SST Tax", amount=bill.sst_tax, calculation=sst_text),
        TariffBreakdownLine(
            component="Total Amount",
            amount=bill.calculated_total,
            calculation="Subtotal + KWTBB Tax + SST Tax",
        ),
    ]


def reconcile_bill_amount(
    calculated_total: money.Number,
    provided_total: money.Number,
    tolerance: Decimal | None = None,
) -> bool:
    """Whether an invoiced total is within tolerance of the formula total."""
    if tolerance is None:
        tolerance = settings.BILL_RECONCILIATION_TOLERANCE
    difference = money.to_decimal(calculated_total) - money.to_decimal(provided_total)
    return abs(difference) <= tolerance


def savings_opportunities(
    bill: TariffBill,
    thresholds: Iterable[int] = SAVINGS_THRESHOLDS_KWH,
    rates: TariffRates | None = None,
) -> dict[int, Decimal]:
    """Bill reduction if usage were brought down to each threshold below current usage."""
    savings: dict[int, Decimal] = {}
    for threshold in thresholds:
        if bill.total_kwh_usage > threshold:
            reduced = compute_bill(threshold, rates=rates)
            savings[threshold] = money.subtract(bill.total_amount, reduced.total_amount)
    return savings
