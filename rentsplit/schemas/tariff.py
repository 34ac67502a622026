"""Tariff bill schemas."""

from decimal import Decimal

from pydantic import BaseModel

from rentsplit.core import money
from rentsplit.schemas.common import Amount


class TariffBill(BaseModel):
    """Itemized TNB bill reconstructed from aggregate kWh usage.

    ``calculated_total`` is what the tariff formula produces. ``total_amount``
    is what downstream allocation uses: the invoiced total when one was
    supplied, otherwise the formula total.
    """

    model_config = {"frozen": True}

    total_kwh_usage: Amount
    energy_charge: Amount
    capacity_charge: Amount
    network_charge: Amount
    retail_charge: Amount
    efficiency_incentive: Amount  # zero or negative
    kwtbb_tax: Amount
    sst_tax: Amount
    calculated_total: Amount
    total_amount: Amount

    @property
    def subtotal(self) -> Decimal:
        """Charges before taxes."""
        return money.sum_amounts(
            [
                self.energy_charge,
                self.capacity_charge,
                self.network_charge,
                self.retail_charge,
                self.efficiency_incentive,
            ]
        )

    @property
    def is_overridden(self) -> bool:
        return self.total_amount != self.calculated_total

    @property
    def override_difference(self) -> Decimal:
        """Invoiced total minus formula total (zero when not overridden)."""
        return money.subtract(self.total_amount, self.calculated_total)

    @property
    def breakdown(self) -> dict[str, Decimal]:
        return {
            "Energy Charge": self.energy_charge,
            "Capacity Charge": self.capacity_charge,
            "Network Charge": self.network_charge,
            "Retail Charge": self.retail_charge,
            "EE Incentive": self.efficiency_incentive,
            "KWTBB Tax": self.kwtbb_tax,
            "SST Tax": self.sst_tax,
            "Total Amount": self.total_amount,
        }


class TariffBreakdownLine(BaseModel):
    """One line of a bill explanation: the amount and how it was derived."""

    component: str
    amount: Decimal
    calculation: str
