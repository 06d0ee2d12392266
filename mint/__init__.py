"""
Mint execution: authorization engine and payment routing.
"""

from .engine import MintAuthorizationEngine
from .payment import PaymentReceipt, PaymentRouter

__all__ = ["MintAuthorizationEngine", "PaymentReceipt", "PaymentRouter"]
