"""
Unit tests for coins, balances and the ledger primitives.
"""

import pytest

from ledger.coin import Balance, Coin
from ledger.exceptions import InsufficientBalanceError, NegativeValueError
from ledger.ledger import Ledger
from registry.exceptions import UnauthorizedError


class TestBalance:

    def test_split(self):
        balance = Balance(100)
        part = balance.split(30)
        assert part.value == 30
        assert balance.value == 70

    def test_split_exact(self):
        balance = Balance(50)
        assert balance.split(50).value == 50
        assert balance.value == 0

    def test_split_too_much(self):
        balance = Balance(10)
        with pytest.raises(InsufficientBalanceError):
            balance.split(11)
        assert balance.value == 10

    def test_negative(self):
        with pytest.raises(NegativeValueError):
            Balance(-1)
        with pytest.raises(NegativeValueError):
            Balance(5).split(-1)

    def test_join(self):
        a, b = Balance(3), Balance(4)
        assert a.join(b) == 7
        assert b.value == 0


class TestLedger:

    @pytest.fixture
    def ledger(self, store):
        return Ledger(store)

    def test_fund_and_balance(self, ledger, ctx):
        ledger.fund(ctx(), "0xalice", 40)
        ledger.fund(ctx(), "0xalice", 2)
        assert ledger.balance_of("0xalice") == 42
        assert ledger.balance_of("0xbob") == 0

    def test_take_requires_ownership(self, ledger, ctx):
        coin = ledger.fund(ctx(), "0xalice", 10)
        with pytest.raises(UnauthorizedError):
            ledger.take(ctx("0xbob"), coin.id)
        with pytest.raises(UnauthorizedError):
            ledger.take(ctx("0xalice"), "missing")

    def test_take_consumes_coin(self, ledger, store, ctx):
        coin = ledger.fund(ctx(), "0xalice", 10)
        balance = ledger.take(ctx("0xalice"), coin.id)
        assert balance.value == 10
        assert not store.exists(coin.id)
        assert ledger.balance_of("0xalice") == 0

    def test_split_and_transfer(self, ledger, store, ctx):
        call = ctx("0xalice")
        coin = ledger.fund(call, "0xalice", 100)
        balance = ledger.take(call, coin.id)

        remaining, part = ledger.split(balance, 25)
        coin_id = ledger.transfer_to(call, part, "0xbob")

        assert remaining is balance
        assert store.get(coin_id, Coin).value == 25
        assert ledger.balance_of("0xbob") == 25
        assert part.value == 0

        assert ledger.transfer_to(call, remaining, "0xalice") is not None
        assert ledger.balance_of("0xalice") == 75

    def test_zero_transfer_creates_no_coin(self, ledger, store, ctx):
        before = len(store)
        assert ledger.transfer_to(ctx(), Balance(0), "0xbob") is None
        assert len(store) == before

    def test_fund_negative(self, ledger, ctx):
        with pytest.raises(NegativeValueError):
            ledger.fund(ctx(), "0xalice", -5)
