"""
Mint Validator Module

Ordered precondition chain for mint requests: version, capability linkage,
collection state, supply, payment mode, payment coin, signing authority and
payment amount.
"""

from .core import MintContext, MintRule, MintValidator
from .rules import (
    LinkageRule,
    MintStateRule,
    PaymentAmountRule,
    PaymentCoinRule,
    PaymentModeRule,
    SigningRule,
    SupplyLimitRule,
    VersionRule,
)


def create_default_validator(compiled_version, capabilities, verifier, store=None) -> MintValidator:
    """
    Build the standard rule chain in precondition order.

    Payment coins are looked up in ``store``, defaulting to the capability
    registry's store.
    """
    return MintValidator([
        VersionRule(compiled_version),
        LinkageRule(capabilities),
        MintStateRule(),
        SupplyLimitRule(),
        PaymentModeRule(),
        PaymentCoinRule(store if store is not None else capabilities.store),
        SigningRule(verifier),
        PaymentAmountRule(),
    ])


__all__ = [
    "MintContext",
    "MintRule",
    "MintValidator",
    "create_default_validator",
    "VersionRule",
    "LinkageRule",
    "MintStateRule",
    "SupplyLimitRule",
    "PaymentModeRule",
    "PaymentCoinRule",
    "SigningRule",
    "PaymentAmountRule",
]
