"""
Ledger exceptions.
"""


class LedgerError(Exception):
    """Base ledger exception."""
    pass


class InsufficientBalanceError(LedgerError):
    """Split or withdrawal larger than the available value."""
    pass


class NegativeValueError(LedgerError):
    """Values are unsigned."""
    pass
