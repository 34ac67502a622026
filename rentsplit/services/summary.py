"""Summaries of calculation results for display and export."""

from decimal import Decimal

from rentsplit.core import money
from rentsplit.schemas.billing import CalculationResult, TenantCostBreakdown
from rentsplit.schemas.summary import CalculationSummary, CostLine, SummaryStats
from rentsplit.schemas.tariff import TariffBill


def calculation_summary(result: CalculationResult, tariff_bill: TariffBill) -> CalculationSummary:
    """Totals, balance check and bill breakdown for one result."""
    return CalculationSummary(
        method=result.method,
        method_display_name=result.method.display_name,
        total_amount=result.total_amount,
        calculated_total=result.calculated_total,
        difference=result.difference,
        is_balanced=result.is_balanced(),
        average_per_tenant=result.average_amount_per_tenant,
        active_tenants=result.active_tenant_count,
        total_usage_kwh=sum((b.usage_kwh for b in result.tenant_breakdowns), Decimal("0")),
        bill_total=tariff_bill.total_amount,
        bill_breakdown=tariff_bill.breakdown,
    )


def summary_stats(result: CalculationResult) -> SummaryStats:
    if not result.tenant_breakdowns:
        return SummaryStats(
            total_tenants=0,
            total_amount=money.ZERO,
            average_per_tenant=money.ZERO,
            min_amount=money.ZERO,
            max_amount=money.ZERO,
            total_usage_kwh=Decimal("0"),
            total_usage_cost=money.ZERO,
            average_usage_kwh=Decimal("0"),
        )

    amounts = [b.total_amount for b in result.tenant_breakdowns]
    total_usage = sum((b.usage_kwh for b in result.tenant_breakdowns), Decimal("0"))
    tenant_count = len(result.tenant_breakdowns)

    return SummaryStats(
        total_tenants=result.active_tenant_count,
        total_amount=result.total_amount,
        average_per_tenant=result.average_amount_per_tenant,
        min_amount=min(amounts),
        max_amount=max(amounts),
        total_usage_kwh=total_usage,
        total_usage_cost=money.sum_amounts(b.individual_usage_cost for b in result.tenant_breakdowns),
        average_usage_kwh=total_usage / tenant_count,
    )


def tenant_cost_lines(breakdown: TenantCostBreakdown) -> list[CostLine]:
    """Receipt lines for one tenant; the miscellaneous line only when charged."""
    if breakdown.usage_kwh > 0:
        rate = breakdown.individual_usage_cost / breakdown.usage_kwh
        usage_text = f"Individual AC usage: {breakdown.usage_kwh:.1f} kWh × RM {rate:.4f}/kWh"
    else:
        usage_text = "No individual AC usage"

    entries = [
        ("Rent Share", breakdown.rent_share, "Monthly rent share"),
        ("Internet Share", breakdown.internet_share, "Internet fee divided equally"),
        ("Water Share", breakdown.water_share, "Water bill divided equally"),
        (
            "Electricity (Non-AC)",
            breakdown.common_electricity_share,
            "Common area electricity divided equally",
        ),
        ("Air Conditioning", breakdown.individual_usage_cost, usage_text),
    ]
    if breakdown.miscellaneous_share > 0:
        entries.append(
            (
                "Miscellaneous",
                breakdown.miscellaneous_share,
                "Additional expenses divided equally",
            )
        )

    return [
        CostLine(
            category=category,
            amount=amount,
            formatted=money.format_ringgit(amount),
            description=description,
        )
        for category, amount, description in entries
    ]
