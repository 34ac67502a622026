"""Schemas for method comparisons and result summaries."""

from decimal import Decimal

from pydantic import BaseModel

from rentsplit.models.enums import CalculationMethod
from rentsplit.schemas.billing import CalculationResult


class TenantMethodDifference(BaseModel):
    """How much one tenant's total moves when switching methods."""

    tenant_id: str
    tenant_name: str
    simple_total: Decimal
    precise_total: Decimal
    difference: Decimal  # precise - simple
    percentage_change: Decimal


class MethodRecommendation(BaseModel):
    method: CalculationMethod
    reason: str
    usage_spread_kwh: Decimal


class MethodComparison(BaseModel):
    """Both strategies run over the same inputs."""

    simple_average: CalculationResult
    layered_precise: CalculationResult
    tenant_differences: list[TenantMethodDifference]
    recommendation: MethodRecommendation


class CalculationSummary(BaseModel):
    method: CalculationMethod
    method_display_name: str
    total_amount: Decimal
    calculated_total: Decimal
    difference: Decimal
    is_balanced: bool
    average_per_tenant: Decimal
    active_tenants: int
    total_usage_kwh: Decimal
    bill_total: Decimal
    bill_breakdown: dict[str, Decimal]


class SummaryStats(BaseModel):
    total_tenants: int
    total_amount: Decimal
    average_per_tenant: Decimal
    min_amount: Decimal
    max_amount: Decimal
    total_usage_kwh: Decimal
    total_usage_cost: Decimal
    average_usage_kwh: Decimal


class CostLine(BaseModel):
    """A labelled line on a tenant's receipt."""

    category: str
    amount: Decimal
    formatted: str
    description: str
