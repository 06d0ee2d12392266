"""
Capability Mint Authority - Value Ledger

Coins held in the object store and the split/transfer primitives the paid
mint flow routes payments with.
"""

from .coin import Balance, Coin
from .exceptions import InsufficientBalanceError, LedgerError
from .ledger import Ledger

__all__ = [
    'Balance',
    'Coin',
    'Ledger',
    'LedgerError',
    'InsufficientBalanceError',
]
