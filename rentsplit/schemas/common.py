"""Shared schema field types."""

from decimal import Decimal
from typing import Annotated

from pydantic import BeforeValidator


def _float_via_str(value: object) -> object:
    """Let ``35.8`` arrive as ``Decimal("35.8")`` rather than its binary expansion."""
    if isinstance(value, float):
        return str(value)
    return value


# Money in RM or energy in kWh
Amount = Annotated[Decimal, BeforeValidator(_float_via_str)]
