"""
Payment Rules

``PaymentModeRule`` keeps the unpaid and paid entry points on the right side
of the collection's payment setting. ``PaymentCoinRule`` resolves the coin a
paid mint pays with, and ``PaymentAmountRule`` checks its value and re-checks
the commission carve-out.
"""

from ledger.coin import Coin
from registry.exceptions import (
    InvalidAmountError,
    InvalidMethodError,
    MintPaymentNotFoundError,
    UnauthorizedError,
)
from registry.policy import check_commission_amount
from registry.storage import ObjectStore

from validator.core import MintContext, MintRule


class PaymentModeRule(MintRule):

    def __init__(self):
        super().__init__(
            name="payment_mode",
            description="Unpaid mints only without payment, paid mints only with it"
        )

    def validate(self, context: MintContext) -> None:
        enabled = context.config.payment.enabled
        if context.paid and not enabled:
            raise InvalidMethodError("Paid mint on a collection without payment")
        if not context.paid and enabled:
            raise InvalidMethodError("Unpaid mint on a collection that requires payment")


class PaymentCoinRule(MintRule):
    """The supplied coin must exist and be held by the sender."""

    def __init__(self, store: ObjectStore):
        super().__init__(
            name="payment_coin",
            description="Payment coin is held by the caller"
        )
        self.store = store

    def is_applicable(self, context: MintContext) -> bool:
        return self.enabled and context.paid

    def validate(self, context: MintContext) -> None:
        coin_id = context.payment_coin_id
        coin = self.store.find(coin_id) if coin_id else None
        if not isinstance(coin, Coin) or not self.store.is_owned_by(coin_id, context.sender):
            raise UnauthorizedError(f"Payment coin {coin_id} is not held by {context.sender}")
        context.payment_value = coin.value


class PaymentAmountRule(MintRule):

    def __init__(self):
        super().__init__(
            name="payment_amount",
            description="Supplied value covers the price; commission is below the price"
        )

    def is_applicable(self, context: MintContext) -> bool:
        return self.enabled and context.paid

    def validate(self, context: MintContext) -> None:
        payment = context.config.payment
        commission = context.config.commission

        if payment.amount is None:
            raise MintPaymentNotFoundError("Payment enabled without an amount")

        supplied = context.payment_value or 0
        if supplied < payment.amount:
            raise InvalidAmountError(f"Supplied {supplied}, price is {payment.amount}")

        if commission.enabled:
            check_commission_amount(commission.amount or 0, payment.amount)
