"""Tests for dungeon/state/balances.py."""

import pytest

from dungeon.core.math import MAX_UINT256
from dungeon.state.balances import BalanceTable


class TestBalanceTable:
    def test_credit_tracks_supply(self):
        t = BalanceTable()
        t.credit("bob", "DNG", 10)
        t.credit("carol", "DNG", 5)
        assert t.get("bob", "DNG") == 10
        assert t.total_supply("DNG") == 15

    def test_debit_reduces_supply(self):
        t = BalanceTable()
        t.credit("bob", "DNG", 10)
        t.debit("bob", "DNG", 4)
        assert t.get("bob", "DNG") == 6
        assert t.total_supply("DNG") == 6

    def test_debit_insufficient(self):
        t = BalanceTable()
        with pytest.raises(ValueError):
            t.debit("bob", "DNG", 1)

    def test_move_keeps_supply(self):
        t = BalanceTable()
        t.credit("bob", "LP", 10)
        t.move("bob", "carol", "LP", 10)
        assert t.get("carol", "LP") == 10
        assert t.total_supply("LP") == 10
        # Zero balances are dropped.
        assert ("bob", "LP") not in t.get_all_balances()

    def test_negative_rejected(self):
        t = BalanceTable()
        with pytest.raises(ValueError):
            t.credit("bob", "LP", -1)

    def test_supply_overflow(self):
        t = BalanceTable()
        t.credit("bob", "LP", MAX_UINT256)
        with pytest.raises(OverflowError):
            t.credit("carol", "LP", 1)

    def test_balances_for_asset(self):
        t = BalanceTable()
        t.credit("bob", "LP", 1)
        t.credit("bob", "DNG", 2)
        t.credit("carol", "LP", 3)
        assert t.get_balances_for_asset("LP") == {"bob": 1, "carol": 3}

    def test_snapshot_restore(self):
        t = BalanceTable()
        t.credit("bob", "LP", 5)
        snap = t.snapshot()
        t.credit("bob", "LP", 5)
        t.credit("carol", "DNG", 1)
        t.restore(snap)
        assert t.get("bob", "LP") == 5
        assert t.total_supply("DNG") == 0
