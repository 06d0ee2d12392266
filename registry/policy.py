"""
Configuration invariants.

Every candidate configuration, whether built at creation or by an
administrative update, passes through ``validate_configuration`` before it is
persisted. Checks run in a fixed order so the same bad input always yields the
same error code.
"""

from typing import List, Optional

from crypto.verifier import is_valid_public_key

from .exceptions import (
    InvalidAmountError,
    InvalidCommissionAmountError,
    InvalidCreatorsError,
    InvalidSignerError,
    InvalidSupplyError,
    MintCommissionPaymentNotFoundError,
    MintCommissionPaymentReceiverNotFoundError,
    MintPaymentNotFoundError,
    MintPaymentReceiverNotFoundError,
)
from .schema import (
    U64_MAX,
    CollectionConfiguration,
    CommissionPolicy,
    PaymentPolicy,
    SigningPolicy,
)


def validate_supply(max_supply: Optional[int], current_supply: int = 0) -> None:
    """Cap must fit a u64, be positive and never sit below minted supply."""
    if max_supply is None:
        return
    if max_supply <= 0 or max_supply > U64_MAX:
        raise InvalidSupplyError(f"Maximum supply {max_supply} out of range")
    if max_supply < current_supply:
        raise InvalidSupplyError(
            f"Maximum supply {max_supply} is below current supply {current_supply}"
        )


def validate_payment(payment: PaymentPolicy) -> None:
    if not payment.enabled:
        return
    if payment.amount is None:
        raise MintPaymentNotFoundError("Payment enabled without an amount")
    if not payment.receiver:
        raise MintPaymentReceiverNotFoundError("Payment enabled without a receiver")
    if payment.amount <= 0:
        raise InvalidAmountError(f"Payment amount must be positive, got {payment.amount}")


def validate_commission(commission: CommissionPolicy, payment: PaymentPolicy) -> None:
    if not commission.enabled:
        return
    if commission.amount is None:
        raise MintCommissionPaymentNotFoundError("Commission enabled without an amount")
    if not commission.receiver:
        raise MintCommissionPaymentReceiverNotFoundError("Commission enabled without a receiver")
    if not payment.enabled:
        raise InvalidCommissionAmountError("Commission requires payment to be enabled")
    check_commission_amount(commission.amount, payment.amount)


def check_commission_amount(commission_amount: int, payment_amount: int) -> None:
    """Commission is a strict carve-out of the payment."""
    if commission_amount <= 0 or commission_amount >= payment_amount:
        raise InvalidCommissionAmountError(
            f"Commission {commission_amount} must be positive and below payment {payment_amount}"
        )


def validate_signing(signing: SigningPolicy) -> None:
    if not signing.required:
        return
    if not signing.public_key or not is_valid_public_key(signing.public_key):
        raise InvalidSignerError("Signing required but no valid public key registered")


def validate_creators(creators: List[str], shares: List[int], royalty_bps: int = 0) -> None:
    """
    Shares and royalties attach to creators; share totals are left to the
    royalty collaborator.
    """
    if not creators:
        if shares or royalty_bps:
            raise InvalidCreatorsError("Shares or royalty given without creators")
        return
    if len(set(creators)) != len(creators):
        raise InvalidCreatorsError("Duplicate creator address")
    if shares and len(shares) != len(creators):
        raise InvalidCreatorsError(
            f"{len(creators)} creators but {len(shares)} shares"
        )


def validate_configuration(config: CollectionConfiguration) -> None:
    """Run every invariant against a candidate configuration."""
    validate_supply(config.max_supply, config.current_supply)
    validate_payment(config.payment)
    validate_commission(config.commission, config.payment)
    validate_signing(config.signing)
