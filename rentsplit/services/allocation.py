"""Allocation engine: split a month's charges and TNB bill across active tenants."""

import logging
from collections.abc import Sequence
from decimal import Decimal

from rentsplit.core import money
from rentsplit.core.config import TariffRates, settings
from rentsplit.core.exceptions import PreconditionViolation
from rentsplit.models.enums import CalculationMethod, PricingMode
from rentsplit.schemas.billing import (
    AllocationOptions,
    CalculationResult,
    MonthlyExpense,
    Tenant,
    TenantCostBreakdown,
)
from rentsplit.schemas.summary import (
    MethodComparison,
    MethodRecommendation,
    TenantMethodDifference,
)
from rentsplit.schemas.tariff import TariffBill
from rentsplit.services.pricing import average_rate, price_usage
from rentsplit.services.tariff import compute_bill

logger = logging.getLogger(__name__)

# (unrounded common electricity share per tenant, individual usage cost by tenant id)
ElectricityShares = tuple[Decimal, dict[str, Decimal]]


def _resolve_method(method: CalculationMethod | str) -> CalculationMethod:
    try:
        return CalculationMethod(method)
    except ValueError:
        raise PreconditionViolation(f"Unknown calculation method: {method!r}") from None


def _resolve_charges(expense: MonthlyExpense, options: AllocationOptions) -> MonthlyExpense:
    """Apply the property's rent and internet fee over the expense's own."""
    update: dict[str, Decimal] = {}
    if options.property_base_rent is not None and options.property_base_rent > 0:
        update["base_rent"] = options.property_base_rent
    if options.property_internet_fee is not None:
        update["internet_fee"] = options.property_internet_fee
    if not update:
        return expense
    return expense.model_copy(update=update)


def _assigned_rent(tenant: Tenant, options: AllocationOptions) -> Decimal | None:
    if tenant.id in options.assigned_rents:
        return options.assigned_rents[tenant.id]
    if tenant.rental_unit_id is not None and tenant.rental_unit_id in options.unit_rents:
        return options.unit_rents[tenant.rental_unit_id]
    return tenant.assigned_monthly_rent


def _exact_rent(
    tenant: Tenant,
    tenant_count: int,
    expense: MonthlyExpense,
    options: AllocationOptions,
) -> Decimal:
    """Full unit rent for tenants with an assigned unit, otherwise an equal split. Not rounded."""
    assigned = _assigned_rent(tenant, options)
    if assigned is not None:
        return assigned
    return expense.base_rent / tenant_count


def _simple_average_electricity(
    expense: MonthlyExpense,
    tariff_bill: TariffBill,
    tenants: Sequence[Tenant],
) -> ElectricityShares:
    """Price common and individual usage alike at the bill's blended rate."""
    rate = average_rate(tariff_bill.total_amount, expense.total_kwh_usage)
    common_share = expense.common_kwh_usage / len(tenants) * rate
    individual_costs = {
        tenant.id: price_usage(tenant.usage_kwh, PricingMode.AVERAGE, rate=rate)
        for tenant in tenants
    }
    logger.debug("Simple average: %s RM/kWh over %s kWh", rate, expense.total_kwh_usage)
    return common_share, individual_costs


def _layered_precise_electricity(
    expense: MonthlyExpense,
    tariff_bill: TariffBill,
    tenants: Sequence[Tenant],
    options: AllocationOptions,
    rates: TariffRates | None,
) -> ElectricityShares:
    """Price common area and individual usage in separate layers.

    Shared meter: the common area is billed as if it were its own tariff
    account, and the rest of the bill is spread over AC usage.
    Individual meters: each tenant's metered usage is priced at the marginal
    rate first, and the common area pays whatever is left.
    """
    tenant_count = len(tenants)

    if options.has_individual_meters:
        individual_costs = {
            tenant.id: price_usage(tenant.usage_kwh, PricingMode.MARGINAL, rates=rates)
            for tenant in tenants
        }
        total_individual = money.sum_amounts(individual_costs.values())
        remaining = money.subtract(tariff_bill.total_amount, total_individual)
        logger.debug(
            "Layered precise (individual meters): %s metered, %s common remainder",
            total_individual,
            remaining,
        )
        return remaining / tenant_count, individual_costs

    common_bill = compute_bill(expense.common_kwh_usage, rates=rates)
    common_share = common_bill.total_amount / tenant_count
    remaining = money.subtract(tariff_bill.total_amount, common_bill.total_amount)

    ac_rate = Decimal("0")
    if expense.total_ac_kwh_usage > 0:
        ac_rate = remaining / expense.total_ac_kwh_usage

    individual_costs = {
        tenant.id: price_usage(tenant.usage_kwh, PricingMode.AVERAGE, rate=ac_rate)
        for tenant in tenants
    }
    logger.debug(
        "Layered precise (shared meter): common bill %s, AC rate %s RM/kWh",
        common_bill.total_amount,
        ac_rate,
    )
    return common_share, individual_costs


def _build_breakdown(
    tenant: Tenant,
    tenant_count: int,
    expense: MonthlyExpense,
    options: AllocationOptions,
    common_share: Decimal,
    individual_cost: Decimal,
) -> TenantCostBreakdown:
    """Round each share for display while keeping the tenant total within a sen.

    The common electricity line absorbs the rounding of the other equal
    splits, so the displayed lines still add up to ``total_amount``.
    """
    misc = expense.miscellaneous_expenses if expense.split_miscellaneous else Decimal("0")
    exact_rent = _exact_rent(tenant, tenant_count, expense, options)

    rent_share = money.round_to_sen(exact_rent)
    internet_share = money.divide(expense.internet_fee, tenant_count)
    water_share = money.divide(expense.water_bill, tenant_count)
    miscellaneous_share = money.divide(misc, tenant_count)
    fixed_share = money.sum_amounts(
        [rent_share, internet_share, water_share, miscellaneous_share]
    )

    exact_shared = (
        exact_rent + (expense.internet_fee + expense.water_bill + misc) / tenant_count + common_share
    )
    common_electricity_share = money.subtract(money.round_to_sen(exact_shared), fixed_share)
    total_amount = money.sum_amounts([fixed_share, common_electricity_share, individual_cost])

    return TenantCostBreakdown(
        tenant_id=tenant.id,
        tenant_name=tenant.name,
        rent_share=rent_share,
        internet_share=internet_share,
        water_share=water_share,
        common_electricity_share=common_electricity_share,
        individual_usage_cost=individual_cost,
        miscellaneous_share=miscellaneous_share,
        total_amount=total_amount,
        usage_kwh=tenant.usage_kwh,
    )


def allocate(
    expense: MonthlyExpense,
    tariff_bill: TariffBill,
    active_tenants: Sequence[Tenant],
    method: CalculationMethod | str,
    options: AllocationOptions | None = None,
    rates: TariffRates | None = None,
) -> CalculationResult:
    """Split the month's fixed charges and electricity bill among active tenants.

    Inactive tenants in ``active_tenants`` are skipped. With nobody to bill the
    result is empty with a zero total rather than an error.

    The result's ``total_amount`` is fixed charges plus the bill total; the sum
    of the rounded tenant totals is exposed separately as ``calculated_total``.
    """
    method = _resolve_method(method)
    options = options or AllocationOptions()
    expense = _resolve_charges(expense, options)
    tenants = [t for t in active_tenants if t.is_active]

    if not tenants:
        return CalculationResult(
            expense_id=expense.id,
            method=method,
            total_amount=money.ZERO,
            active_tenant_count=0,
        )

    if method == CalculationMethod.SIMPLE_AVERAGE:
        common_share, individual_costs = _simple_average_electricity(expense, tariff_bill, tenants)
    else:
        common_share, individual_costs = _layered_precise_electricity(
            expense, tariff_bill, tenants, options, rates
        )

    breakdowns = [
        _build_breakdown(
            tenant,
            len(tenants),
            expense,
            options,
            common_share,
            individual_costs[tenant.id],
        )
        for tenant in tenants
    ]

    result = CalculationResult(
        expense_id=expense.id,
        method=method,
        total_amount=money.add(expense.total_non_electricity_charges, tariff_bill.total_amount),
        active_tenant_count=len(tenants),
        tenant_breakdowns=breakdowns,
    )
    logger.debug(
        "Allocated %s among %d tenants with %s (tenant sum %s)",
        result.total_amount,
        result.active_tenant_count,
        method.value,
        result.calculated_total,
    )
    return result


def _usage_spread(tenants: Sequence[Tenant]) -> Decimal:
    usages = [t.usage_kwh for t in tenants if t.is_active]
    if len(usages) < 2:
        return Decimal("0")
    return max(usages) - min(usages)


def recommend_method(
    tenants: Sequence[Tenant],
    tenant_differences: Sequence[TenantMethodDifference] | None = None,
) -> MethodRecommendation:
    """Pick a method from how much tenants' individual usage varies.

    A small spread makes per-tenant pricing pointless; a large one makes the
    blended rate cross-subsidize low-usage tenants. In between, the actual
    cost differences between the two methods decide.
    """
    spread = _usage_spread(tenants)

    if spread <= settings.SIMPLE_AVERAGE_MAX_SPREAD_KWH:
        return MethodRecommendation(
            method=CalculationMethod.SIMPLE_AVERAGE,
            reason=f"Usage spread of {spread:.1f} kWh is small; precise pricing changes little",
            usage_spread_kwh=spread,
        )
    if spread > settings.LAYERED_PRECISE_MIN_SPREAD_KWH:
        return MethodRecommendation(
            method=CalculationMethod.LAYERED_PRECISE,
            reason=f"Usage spread of {spread:.1f} kWh is large; avoids cross-subsidizing",
            usage_spread_kwh=spread,
        )

    if tenant_differences:
        max_difference = max(abs(d.difference) for d in tenant_differences)
        if max_difference < settings.RECOMMENDATION_COST_DIFFERENCE:
            return MethodRecommendation(
                method=CalculationMethod.SIMPLE_AVERAGE,
                reason=f"Minimal cost differences (max {money.format_ringgit(max_difference)})",
                usage_spread_kwh=spread,
            )
        return MethodRecommendation(
            method=CalculationMethod.LAYERED_PRECISE,
            reason=f"Moderate cost differences (max {money.format_ringgit(max_difference)})",
            usage_spread_kwh=spread,
        )

    return MethodRecommendation(
        method=CalculationMethod.LAYERED_PRECISE,
        reason=f"Usage spread of {spread:.1f} kWh is moderate; recommended for fairness",
        usage_spread_kwh=spread,
    )


def compare_methods(
    expense: MonthlyExpense,
    tariff_bill: TariffBill,
    active_tenants: Sequence[Tenant],
    options: AllocationOptions | None = None,
    rates: TariffRates | None = None,
) -> MethodComparison:
    """Run both strategies on the same inputs and recommend one."""
    simple = allocate(
        expense, tariff_bill, active_tenants, CalculationMethod.SIMPLE_AVERAGE, options, rates
    )
    precise = allocate(
        expense, tariff_bill, active_tenants, CalculationMethod.LAYERED_PRECISE, options, rates
    )

    differences: list[TenantMethodDifference] = []
    for simple_breakdown in simple.tenant_breakdowns:
        precise_breakdown = precise.get_breakdown(simple_breakdown.tenant_id)
        if precise_breakdown is None:
            continue
        difference = money.subtract(precise_breakdown.total_amount, simple_breakdown.total_amount)
        percentage = Decimal("0")
        if simple_breakdown.total_amount > 0:
            percentage = money.round_to_sen(difference / simple_breakdown.total_amount * 100)
        differences.append(
            TenantMethodDifference(
                tenant_id=simple_breakdown.tenant_id,
                tenant_name=simple_breakdown.tenant_name,
                simple_total=simple_breakdown.total_amount,
                precise_total=precise_breakdown.total_amount,
                difference=difference,
                percentage_change=percentage,
            )
        )

    return MethodComparison(
        simple_average=simple,
        layered_precise=precise,
        tenant_differences=differences,
        recommendation=recommend_method(active_tenants, differences),
    )
