"""
Coin and Balance types.

A ``Coin`` is a stored, owned object. A ``Balance`` is loose value taken out of
a coin during a call; it must be routed to an address (becoming a coin again)
before the call ends.
"""

from pydantic import BaseModel, Field

from registry.storage import register_model

from .exceptions import InsufficientBalanceError, NegativeValueError


@register_model
class Coin(BaseModel):
    """Owned unit of value."""

    id: str
    value: int = Field(..., ge=0)


class Balance:
    """Unowned value in flight. Never negative."""

    def __init__(self, value: int = 0):
        if value < 0:
            raise NegativeValueError(f"Balance cannot be negative: {value}")
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def split(self, amount: int) -> 'Balance':
        """Take exactly ``amount`` out of this balance."""
        if amount < 0:
            raise NegativeValueError(f"Cannot split a negative amount: {amount}")
        if amount > self._value:
            raise InsufficientBalanceError(f"Cannot split {amount} from balance of {self._value}")
        self._value -= amount
        return Balance(amount)

    def join(self, other: 'Balance') -> int:
        """Absorb ``other``; it is left empty."""
        self._value += other.withdraw_all()
        return self._value

    def withdraw_all(self) -> int:
        value, self._value = self._value, 0
        return value

    def __repr__(self) -> str:
        return f"Balance({self._value})"
