"""
Ledger over the object store.

All value movement goes through here. Values are unsigned integers and a
split can never take more than a balance holds.
"""

import logging
from typing import Optional, Tuple

from registry.exceptions import ObjectNotFoundError, UnauthorizedError
from registry.storage import ObjectStore

from .coin import Balance, Coin
from .exceptions import NegativeValueError


class Ledger:
    """Coin storage plus split and transfer primitives."""

    def __init__(self, store: ObjectStore):
        self.store = store
        self.logger = logging.getLogger(__name__)

    def fund(self, ctx, owner: str, value: int) -> Coin:
        """Create a new coin out of thin air. Used by hosts and tests."""
        if value < 0:
            raise NegativeValueError(f"Cannot fund a negative value: {value}")
        coin = Coin(id=ctx.fresh_id(), value=value)
        self.store.add(coin, owner)
        self.logger.debug(f"Funded {owner} with {value} (coin {coin.id})")
        return coin

    def get_coin(self, coin_id: str) -> Coin:
        return self.store.get(coin_id, Coin)

    def take(self, ctx, coin_id: str) -> Balance:
        """Consume a coin owned by the sender into a loose balance."""
        try:
            coin = self.get_coin(coin_id)
        except ObjectNotFoundError:
            raise UnauthorizedError(f"Coin {coin_id} not found")
        if not self.store.is_owned_by(coin_id, ctx.sender):
            raise UnauthorizedError(f"Coin {coin_id} is not owned by {ctx.sender}")

        self.store.remove(coin_id)
        return Balance(coin.value)

    def split(self, balance: Balance, amount: int) -> Tuple[Balance, Balance]:
        """Split exactly ``amount`` off; returns (remaining, split_off)."""
        split_off = balance.split(amount)
        return balance, split_off

    def transfer_to(self, ctx, balance: Balance, address: str) -> Optional[str]:
        """
        Route the whole balance to ``address`` as a new coin.

        Returns the new coin id, or None when the balance is empty.
        """
        value = balance.withdraw_all()
        if value == 0:
            return None
        coin = Coin(id=ctx.fresh_id(), value=value)
        self.store.add(coin, address)
        self.logger.debug(f"Transferred {value} to {address} (coin {coin.id})")
        return coin.id

    def balance_of(self, address: str) -> int:
        return sum(coin.value for coin in self.store.owned_by(address, Coin))
