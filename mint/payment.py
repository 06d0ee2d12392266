"""
Payment routing for paid mints.

Exactly ``payment.amount`` is split off the supplied coin. When commission is
enabled, exactly ``commission.amount`` is carved out of that slice for the
commission receiver and the rest goes to the payment receiver. Anything left
in the supplied coin goes back to the sender.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ledger.ledger import Ledger
from registry.schema import CollectionConfiguration


@dataclass
class PaymentReceipt:
    """Where the value of a paid mint went."""
    supplied: int
    payment_amount: int
    payment_receiver: str
    payment_coin_id: Optional[str]
    commission_applied: bool = False
    commission_amount: int = 0
    commission_receiver: Optional[str] = None
    commission_coin_id: Optional[str] = None
    change_amount: int = 0
    change_coin_id: Optional[str] = None

    @property
    def receiver_amount(self) -> int:
        """What the payment receiver actually got."""
        return self.payment_amount - self.commission_amount

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PaymentRouter:
    """Split a supplied coin across payment, commission and change."""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger
        self.logger = logging.getLogger(__name__)

    def route(self, ctx, coin_id: str, config: CollectionConfiguration) -> PaymentReceipt:
        payment = config.payment
        commission = config.commission

        balance = self.ledger.take(ctx, coin_id)
        supplied = balance.value
        balance, payment_slice = self.ledger.split(balance, payment.amount)

        receipt = PaymentReceipt(
            supplied=supplied,
            payment_amount=payment.amount,
            payment_receiver=payment.receiver,
            payment_coin_id=None,
        )

        if commission.enabled:
            payment_slice, commission_slice = self.ledger.split(payment_slice, commission.amount)
            receipt.commission_applied = True
            receipt.commission_amount = commission.amount
            receipt.commission_receiver = commission.receiver
            receipt.commission_coin_id = self.ledger.transfer_to(
                ctx, commission_slice, commission.receiver
            )

        receipt.payment_coin_id = self.ledger.transfer_to(ctx, payment_slice, payment.receiver)

        receipt.change_amount = balance.value
        receipt.change_coin_id = self.ledger.transfer_to(ctx, balance, ctx.sender)

        self.logger.debug(
            f"Routed {supplied}: {receipt.receiver_amount} to {payment.receiver}, "
            f"{receipt.commission_amount} commission, {receipt.change_amount} change"
        )
        return receipt
