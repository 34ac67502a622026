"""Exceptions raised by the calculation engine."""


class RentSplitError(Exception):
    """Base class for all engine errors."""


class PreconditionViolation(RentSplitError, ValueError):
    """A caller broke the contract of an operation (e.g. dividing among zero tenants).

    Bad user data is reported by the validation layer instead.
    """
