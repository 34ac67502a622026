"""Tests for the TNB tariff calculator."""

import logging
from collections.abc import Callable
from decimal import Decimal

import pytest

from rentsplit.core.config import TariffRates
from rentsplit.core.exceptions import PreconditionViolation
from rentsplit.services.tariff import (
    compute_bill,
    explain_bill,
    reconcile_bill_amount,
    savings_opportunities,
)


class TestComputeBill:
    """Component-by-component bill reconstruction."""

    def test_mid_usage_bill(self) -> None:
        """680 kWh: retail charge, KWTBB and SST all apply; incentive still applies."""
        bill = compute_bill(680)

        assert bill.total_kwh_usage == Decimal("680")
        assert bill.energy_charge == Decimal("183.80")
        assert bill.capacity_charge == Decimal("30.94")
        assert bill.network_charge == Decimal("87.38")
        assert bill.retail_charge == Decimal("10.00")
        assert bill.efficiency_incentive == Decimal("-40.80")
        assert bill.subtotal == Decimal("271.32")
        assert bill.kwtbb_tax == Decimal("4.34")
        assert bill.sst_tax == Decimal("2.84")
        assert bill.calculated_total == Decimal("278.50")
        assert bill.total_amount == Decimal("278.50")
        assert not bill.is_overridden

    def test_low_usage_bill(self) -> None:
        """380 kWh: retail waived and no SST, but KWTBB applies."""
        bill = compute_bill(380)

        assert bill.energy_charge == Decimal("102.71")
        assert bill.capacity_charge == Decimal("17.29")
        assert bill.network_charge == Decimal("48.83")
        assert bill.retail_charge == Decimal("0.00")
        assert bill.efficiency_incentive == Decimal("-22.80")
        assert bill.subtotal == Decimal("146.03")
        assert bill.kwtbb_tax == Decimal("2.34")
        assert bill.sst_tax == Decimal("0.00")
        assert bill.total_amount == Decimal("148.37")

    def test_kwtbb_exempt_at_threshold(self) -> None:
        bill = compute_bill(300)

        assert bill.kwtbb_tax == Decimal("0")
        assert bill.total_amount == Decimal("115.29")

    def test_incentive_at_ceiling(self) -> None:
        bill = compute_bill(1000)

        assert bill.efficiency_incentive == Decimal("-60.00")
        assert bill.total_amount == Decimal("414.83")

    def test_no_incentive_above_ceiling(self) -> None:
        assert compute_bill(1001).efficiency_incentive == Decimal("0")

    @pytest.mark.parametrize(
        ("usage", "expected"),
        [(1500, "405.45"), (2000, "590.60")],
    )
    def test_tiered_energy_charge(self, usage: int, expected: str) -> None:
        assert compute_bill(usage).energy_charge == Decimal(expected)

    @pytest.mark.parametrize(
        ("at", "above", "component", "at_check", "above_check"),
        [
            (600, 600.01, "retail_charge", lambda v: v == 0, lambda v: v == Decimal("10.00")),
            (300, 300.01, "kwtbb_tax", lambda v: v == 0, lambda v: v > 0),
            (1000, 1000.01, "efficiency_incentive", lambda v: v < 0, lambda v: v == 0),
        ],
        ids=["retail-waiver", "kwtbb-exemption", "incentive-ceiling"],
    )
    def test_threshold_boundaries(
        self,
        at: int,
        above: float,
        component: str,
        at_check: Callable[[Decimal], bool],
        above_check: Callable[[Decimal], bool],
    ) -> None:
        """Each threshold is inclusive: the charge changes only once usage exceeds it."""
        assert at_check(getattr(compute_bill(at), component))
        assert above_check(getattr(compute_bill(above), component))

    def test_sst_only_on_usage_above_threshold(self) -> None:
        """SST is charged on (700 - 600) kWh at the base variable rate."""
        assert compute_bill(700).sst_tax == Decimal("3.55")

    def test_zero_usage(self) -> None:
        bill = compute_bill(0)

        assert bill.total_amount == Decimal("0")
        assert all(amount == 0 for amount in bill.breakdown.values())

    def test_negative_usage_rejected(self) -> None:
        with pytest.raises(PreconditionViolation):
            compute_bill(-1)

    def test_total_equals_sum_of_components(self) -> None:
        for usage in (0, 150, 301, 599, 601, 999, 1001, 1499, 1501, 3000):
            bill = compute_bill(usage)
            assert bill.calculated_total == bill.subtotal + bill.kwtbb_tax + bill.sst_tax

    def test_total_is_monotonic_in_usage(self) -> None:
        """Total never decreases as usage grows, including across thresholds."""
        usages = [Decimal(kwh) for kwh in range(0, 2501)]
        for threshold in ("300", "600", "1000", "1500"):
            usages.append(Decimal(threshold) + Decimal("0.01"))
        usages.sort()

        totals = [compute_bill(usage).total_amount for usage in usages]
        for previous, current in zip(totals, totals[1:]):
            assert current >= previous

    def test_float_usage_accepted(self) -> None:
        assert compute_bill(680.0).total_amount == Decimal("278.50")

    def test_custom_rates(self) -> None:
        rates = TariffRates(sst_tax_rate=Decimal("0.06"))
        assert compute_bill(680, rates=rates).sst_tax == Decimal("2.13")


class TestOverride:
    """Invoiced totals replacing the formula total."""

    def test_override_replaces_total(self) -> None:
        bill = compute_bill(850, override_total="299.99")

        assert bill.calculated_total == Decimal("350.95")
        assert bill.total_amount == Decimal("299.99")
        assert bill.is_overridden
        assert bill.override_difference == Decimal("-50.96")
        assert bill.breakdown["Total Amount"] == Decimal("299.99")

    def test_float_override_replaces_total(self) -> None:
        """A float invoice amount is taken at face value, not its binary expansion."""
        bill = compute_bill(850, override_total=299.99)

        assert bill.total_amount == Decimal("299.99")
        assert bill.calculated_total == Decimal("350.95")

    def test_components_still_computed(self) -> None:
        bill = compute_bill(850, override_total="299.99")

        assert bill.energy_charge == Decimal("229.76")
        assert bill.kwtbb_tax == Decimal("5.39")
        assert bill.sst_tax == Decimal("8.89")

    def test_large_override_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="rentsplit.services.tariff"):
            compute_bill(850, override_total="299.99")

        assert "differs from tariff total" in caplog.text

    def test_override_within_tolerance_not_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="rentsplit.services.tariff"):
            bill = compute_bill(680, override_total="278.60")

        assert bill.total_amount == Decimal("278.60")
        assert "differs from tariff total" not in caplog.text


class TestExplainBill:
    """Human-readable derivation of each component."""

    def test_lines_match_bill(self) -> None:
        lines = explain_bill(680)
        bill = compute_bill(680)

        assert [line.component for line in lines] == list(bill.breakdown)
        assert [line.amount for line in lines] == list(bill.breakdown.values())

    def test_mid_usage_text(self) -> None:
        lines = {line.component: line.calculation for line in explain_bill(680)}

        assert lines["Energy Charge"] == "680.0 kWh × RM 0.2703"
        assert lines["Retail Charge"] == "RM 10.00 (>600 kWh)"
        assert lines["EE Incentive"] == "680.0 kWh × RM -0.060"
        assert lines["KWTBB Tax"] == "RM 271.32 × 1.6%"
        assert lines["SST Tax"] == "80.0 kWh × RM 0.4443 × 8.0%"
        assert lines["Total Amount"] == "Subtotal + KWTBB Tax + SST Tax"

    def test_low_usage_text(self) -> None:
        lines = {line.component: line.calculation for line in explain_bill(250)}

        assert lines["Retail Charge"] == "Waived (≤600 kWh)"
        assert lines["KWTBB Tax"] == "Exempted (≤300 kWh)"
        assert lines["SST Tax"] == "Not applicable (≤600 kWh)"

    def test_tier2_energy_text(self) -> None:
        lines = {line.component: line.calculation for line in explain_bill(2000)}

        assert lines["Energy Charge"] == "1500 kWh × RM 0.2703 + 500.0 kWh × RM 0.3703"
        assert lines["EE Incentive"] == "No incentive applicable"


class TestReconciliation:
    def test_within_tolerance(self) -> None:
        assert reconcile_bill_amount("278.50", "278.90")
        assert reconcile_bill_amount("278.50", "278.00")

    def test_outside_tolerance(self) -> None:
        assert not reconcile_bill_amount("278.50", "279.01")

    def test_explicit_tolerance(self) -> None:
        assert not reconcile_bill_amount("278.50", "278.60", tolerance=Decimal("0.05"))


class TestSavingsOpportunities:
    def test_savings_below_current_usage(self) -> None:
        savings = savings_opportunities(compute_bill(680))

        assert savings == {300: Decimal("163.21"), 600: Decimal("44.23")}

    def test_no_savings_at_low_usage(self) -> None:
        assert savings_opportunities(compute_bill(250)) == {}
