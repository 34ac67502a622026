"""Pre-flight checks on calculation inputs.

Issues are reported, not raised: the caller decides whether to block the
calculation or proceed with a warning.
"""

import logging
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from rentsplit.core.config import settings
from rentsplit.models.enums import ValidationCode
from rentsplit.schemas.billing import MonthlyExpense, Tenant, ValidationIssue

logger = logging.getLogger(__name__)


def _period_issues(expense: MonthlyExpense, today: date) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if expense.month < 1 or expense.month > 12:
        issues.append(
            ValidationIssue(
                code=ValidationCode.INVALID_PERIOD,
                message=f"Invalid month: {expense.month}",
            )
        )
    if expense.year < settings.MIN_EXPENSE_YEAR or expense.year > today.year + 1:
        issues.append(
            ValidationIssue(
                code=ValidationCode.INVALID_PERIOD,
                message=f"Invalid year: {expense.year}",
            )
        )
    return issues


def _usage_issues(expense: MonthlyExpense) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if expense.total_kwh_usage < 0:
        issues.append(
            ValidationIssue(
                code=ValidationCode.NEGATIVE_USAGE,
                message="Total electricity usage cannot be negative",
            )
        )
    if expense.total_ac_kwh_usage < 0:
        issues.append(
            ValidationIssue(
                code=ValidationCode.NEGATIVE_USAGE,
                message="Total AC usage cannot be negative",
            )
        )
    if expense.total_ac_kwh_usage > expense.total_kwh_usage:
        issues.append(
            ValidationIssue(
                code=ValidationCode.AC_EXCEEDS_TOTAL,
                message="AC usage cannot exceed total electricity usage",
            )
        )
    return issues


def _reading_issues(tenants: Sequence[Tenant]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for tenant in tenants:
        if not tenant.reading.is_valid:
            issues.append(
                ValidationIssue(
                    code=ValidationCode.INVALID_METER_READING,
                    message=(
                        f"{tenant.name} has invalid AC readings: current "
                        f"({tenant.reading.current_reading}) must be >= previous "
                        f"({tenant.reading.previous_reading})"
                    ),
                    tenant_id=tenant.id,
                )
            )
    return issues


def validate_inputs(
    expense: MonthlyExpense,
    tenants: Sequence[Tenant],
    today: date | None = None,
    tolerance: Decimal | None = None,
) -> list[ValidationIssue]:
    """Check an expense and its tenants before allocation.

    Args:
        expense: The month's expense record
        tenants: All tenants of the property; only active ones are checked
        today: Reference date for the upper year bound (defaults to today)
        tolerance: Allowed kWh gap between the expense AC total and the sum
            of tenant readings

    Returns:
        List of issues, empty when everything checks out
    """
    today = today or date.today()
    if tolerance is None:
        tolerance = settings.USAGE_MISMATCH_TOLERANCE_KWH

    active_tenants = [t for t in tenants if t.is_active]
    issues: list[ValidationIssue] = []

    if not active_tenants:
        issues.append(
            ValidationIssue(
                code=ValidationCode.NO_ACTIVE_TENANTS,
                message="At least one active tenant is required",
            )
        )

    issues.extend(_period_issues(expense, today))
    issues.extend(_usage_issues(expense))

    tenant_ac_total = sum((t.usage_kwh for t in active_tenants), Decimal("0"))
    if abs(tenant_ac_total - expense.total_ac_kwh_usage) > tolerance:
        issues.append(
            ValidationIssue(
                code=ValidationCode.USAGE_MISMATCH,
                message=(
                    f"Tenant AC usage total ({tenant_ac_total:.1f}kWh) does not match "
                    f"expense AC total ({expense.total_ac_kwh_usage:.1f}kWh)"
                ),
            )
        )

    issues.extend(_reading_issues(active_tenants))

    if issues:
        logger.debug("Validation found %d issue(s) for expense %s", len(issues), expense.id)
    return issues


def validation_messages(
    expense: MonthlyExpense,
    tenants: Sequence[Tenant],
    today: date | None = None,
    tolerance: Decimal | None = None,
) -> list[str]:
    """Human-readable messages for ``validate_inputs``."""
    return [issue.message for issue in validate_inputs(expense, tenants, today, tolerance)]
