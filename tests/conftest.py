"""Shared fixtures: a three-tenant house on one shared TNB meter."""

from collections.abc import Callable
from decimal import Decimal

import pytest

from rentsplit.schemas.billing import MonthlyExpense, Tenant, UsageReading
from rentsplit.schemas.tariff import TariffBill
from rentsplit.services.tariff import compute_bill


@pytest.fixture
def make_tenant() -> Callable[..., Tenant]:
    """Factory for tenants whose AC meter advanced by ``usage`` kWh."""

    def _make(
        tenant_id: str,
        usage: str | int,
        previous: str = "1000",
        is_active: bool = True,
        **kwargs,
    ) -> Tenant:
        previous_reading = Decimal(previous)
        return Tenant(
            id=tenant_id,
            name=kwargs.pop("name", f"Tenant {tenant_id.upper()}"),
            is_active=is_active,
            reading=UsageReading(
                previous_reading=previous_reading,
                current_reading=previous_reading + Decimal(str(usage)),
            ),
            **kwargs,
        )

    return _make


@pytest.fixture
def expense() -> MonthlyExpense:
    """July 2024: 680 kWh total, 300 kWh of it on tenant AC meters."""
    return MonthlyExpense(
        id="exp-2024-07",
        property_id="prop-1",
        month=7,
        year=2024,
        base_rent=Decimal("1500"),
        internet_fee=Decimal("89"),
        water_bill=Decimal("35.80"),
        total_kwh_usage=Decimal("680"),
        total_ac_kwh_usage=Decimal("300"),
    )


@pytest.fixture
def tenants(make_tenant: Callable[..., Tenant]) -> list[Tenant]:
    return [
        make_tenant("a", 120),
        make_tenant("b", 100),
        make_tenant("c", 80),
    ]


@pytest.fixture
def bill(expense: MonthlyExpense) -> TariffBill:
    return compute_bill(expense.total_kwh_usage)
