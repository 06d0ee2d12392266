"""
Mint Validator Rules

Concrete rules of the mint precondition chain, listed in the order the
default chain applies them.
"""

from .version import VersionRule
from .linkage import LinkageRule
from .mint_state import MintStateRule
from .supply_limit import SupplyLimitRule
from .payment import PaymentAmountRule, PaymentCoinRule, PaymentModeRule
from .signing import SigningRule

__all__ = [
    "VersionRule",
    "LinkageRule",
    "MintStateRule",
    "SupplyLimitRule",
    "PaymentModeRule",
    "PaymentCoinRule",
    "SigningRule",
    "PaymentAmountRule",
]
