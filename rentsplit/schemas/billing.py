"""Billing schemas: calculation inputs and per-tenant cost allocation results."""

import calendar
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from rentsplit.core import money
from rentsplit.models.enums import CalculationMethod, ValidationCode
from rentsplit.schemas.common import Amount


class UsageReading(BaseModel):
    """A tenant's sub-meter readings (kWh) for one period."""

    model_config = {"frozen": True}

    previous_reading: Amount = Decimal("0")
    current_reading: Amount = Decimal("0")

    @property
    def usage(self) -> Decimal:
        return self.current_reading - self.previous_reading

    @property
    def is_valid(self) -> bool:
        return self.current_reading >= self.previous_reading and self.previous_reading >= 0


class MonthlyExpense(BaseModel):
    """Aggregate charges for one property and calendar month.

    ``common_kwh_usage`` is the non-AC remainder of the main meter, clamped to
    zero when the AC total is (wrongly) larger than the main meter total.
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    property_id: str | None = None
    month: int
    year: int
    base_rent: Amount = Decimal("0")
    internet_fee: Amount = Decimal("0")
    water_bill: Amount = Decimal("0")
    miscellaneous_expenses: Amount = Decimal("0")
    split_miscellaneous: bool = True
    total_kwh_usage: Amount = Decimal("0")
    total_ac_kwh_usage: Amount = Decimal("0")

    @property
    def common_kwh_usage(self) -> Decimal:
        return max(Decimal("0"), self.total_kwh_usage - self.total_ac_kwh_usage)

    @property
    def total_non_electricity_charges(self) -> Decimal:
        misc = self.miscellaneous_expenses if self.split_miscellaneous else Decimal("0")
        return money.sum_amounts([self.base_rent, self.internet_fee, self.water_bill, misc])

    @property
    def period_description(self) -> str:
        if 1 <= self.month <= 12:
            return f"{calendar.month_name[self.month]} {self.year}"
        return f"Month {self.month} {self.year}"


class Tenant(BaseModel):
    """Calculation-relevant view of a tenant."""

    model_config = {"frozen": True}

    id: str
    name: str
    is_active: bool = True
    reading: UsageReading = UsageReading()
    rental_unit_id: str | None = None
    assigned_monthly_rent: Amount | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate tenant name is not empty."""
        if not v or not v.strip():
            raise ValueError("Tenant name must not be empty")
        return v

    @property
    def usage_kwh(self) -> Decimal:
        return self.reading.usage


class AllocationOptions(BaseModel):
    """Property configuration that changes how shares are computed.

    ``assigned_rents`` maps tenant ids to the full monthly rent of the unit
    they occupy; those tenants pay that rent instead of an equal split.
    ``unit_rents`` maps rental unit ids to their monthly rent and applies to
    tenants through ``Tenant.rental_unit_id``. A tenant-id entry wins over a
    unit entry, which wins over ``Tenant.assigned_monthly_rent``.
    """

    has_individual_meters: bool = False
    assigned_rents: dict[str, Amount] = Field(default_factory=dict)
    unit_rents: dict[str, Amount] = Field(default_factory=dict)
    property_base_rent: Amount | None = None
    property_internet_fee: Amount | None = None


class TenantCostBreakdown(BaseModel):
    """One tenant's share of the month's costs."""

    model_config = {"frozen": True}

    tenant_id: str
    tenant_name: str
    rent_share: Decimal
    internet_share: Decimal
    water_share: Decimal
    common_electricity_share: Decimal
    individual_usage_cost: Decimal
    miscellaneous_share: Decimal
    total_amount: Decimal
    usage_kwh: Decimal

    @property
    def total_electricity_cost(self) -> Decimal:
        return money.add(self.common_electricity_share, self.individual_usage_cost)


class CalculationResult(BaseModel):
    """Outcome of one allocation run.

    ``total_amount`` is the authoritative total (fixed charges plus the bill).
    It can differ from ``calculated_total``, the sum of the rounded tenant
    totals, by a few sen.
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    expense_id: str | None = None
    method: CalculationMethod
    total_amount: Decimal
    active_tenant_count: int
    tenant_breakdowns: list[TenantCostBreakdown] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def calculated_total(self) -> Decimal:
        return money.sum_amounts(b.total_amount for b in self.tenant_breakdowns)

    @property
    def difference(self) -> Decimal:
        return money.subtract(self.total_amount, self.calculated_total)

    @property
    def average_amount_per_tenant(self) -> Decimal:
        if self.active_tenant_count == 0:
            return money.ZERO
        return money.divide(self.total_amount, self.active_tenant_count)

    def is_balanced(self, tolerance: Decimal | None = None) -> bool:
        """Check that tenant totals add up to the total within rounding drift.

        The default tolerance is one sen per tenant.
        """
        if tolerance is None:
            tolerance = money.SEN * max(self.active_tenant_count, 1)
        return abs(self.total_amount - self.calculated_total) <= tolerance

    def get_breakdown(self, tenant_id: str) -> TenantCostBreakdown | None:
        return next((b for b in self.tenant_breakdowns if b.tenant_id == tenant_id), None)


class ValidationIssue(BaseModel):
    """A named validation failure with a message suitable for display."""

    code: ValidationCode
    message: str
    tenant_id: str | None = None
