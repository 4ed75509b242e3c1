"""Tests for dungeon/core/positions.py: settlement, deposits, withdrawals, rounds."""

from dataclasses import replace

import pytest

from dungeon.core.errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidPoolError,
    LedgerArithmeticError,
)
from dungeon.core.math import PRECISION
from dungeon.core.positions import (
    deposit,
    emergency_withdraw,
    pending_reward,
    principal_of,
    roll_forward,
    settle,
    shares_for_deposit,
    withdraw,
)
from dungeon.core.types import Pool, PoolKind, UserPosition


def _pool(kind: PoolKind = PoolKind.NORMAL, **kwargs) -> Pool:
    terms = {"weight": 1} if kind is PoolKind.NORMAL else {"interval_blocks": 10}
    base = Pool(pool_id=0, kind=kind, staked_assets=("LP",), reward_asset="DNG", **terms)
    return replace(base, **kwargs)


class TestSettle:
    def test_pays_delta_and_checkpoints(self):
        pool = _pool(total_staked=100, total_shares=100, acc_reward_per_share=2 * PRECISION)
        pos = UserPosition(amount=100, reward_debt=PRECISION)
        s = settle(pool, pos)
        assert s.reward == 100
        assert s.position == UserPosition(amount=100, reward_debt=2 * PRECISION)
        assert s.pool == pool

    def test_second_settle_pays_nothing(self):
        pool = _pool(total_staked=100, total_shares=100, acc_reward_per_share=3 * PRECISION)
        first = settle(pool, UserPosition(amount=100))
        second = settle(pool, first.position)
        assert first.reward == 300
        assert second.reward == 0

    def test_pending_matches_settle(self):
        pool = _pool(total_staked=7, total_shares=7, acc_reward_per_share=PRECISION // 3)
        pos = UserPosition(amount=7)
        assert pending_reward(pool, pos) == settle(pool, pos).reward == 2


# ---------------------------------------------------------------------------
# Deposits
# ---------------------------------------------------------------------------

class TestDeposit:
    def test_first_deposit_mints_shares_one_to_one(self):
        pool = _pool(acc_reward_per_share=5)
        s = deposit(pool, UserPosition(), 1_000)
        assert s.pool.total_staked == 1_000
        assert s.pool.total_shares == 1_000
        assert s.position == UserPosition(amount=1_000, reward_debt=5)
        assert s.principal_in == 1_000
        assert s.reward == 0

    def test_deposit_settles_first(self):
        pool = _pool(total_staked=100, total_shares=100, acc_reward_per_share=PRECISION)
        s = deposit(pool, UserPosition(amount=100), 50)
        assert s.reward == 100
        assert s.position.amount == 150
        assert s.position.reward_debt == PRECISION

    @pytest.mark.parametrize("amount", [0, -1, True])
    def test_bad_amount(self, amount):
        with pytest.raises(InvalidAmountError):
            deposit(_pool(), UserPosition(), amount)

    def test_shares_after_burn(self):
        pool = _pool(PoolKind.BURN, total_staked=55, total_shares=60)
        assert shares_for_deposit(pool, 11) == 12
        s = deposit(pool, UserPosition(), 11)
        assert s.pool.total_staked == 66
        assert s.pool.total_shares == 72
        assert principal_of(s.pool, s.position) == 11

    def test_zero_share_deposit_rejected(self):
        pool = _pool(PoolKind.BURN, total_staked=100, total_shares=1)
        with pytest.raises(InvalidAmountError):
            deposit(pool, UserPosition(), 50)

    def test_fee_withheld_from_normal_deposit(self):
        s = deposit(_pool(), UserPosition(), 1_000, fee_bps=25)
        assert s.principal_in == 1_000
        assert s.fee_withheld == 2
        assert s.pool.total_staked == s.pool.total_shares == 998
        assert s.position.amount == 998

    def test_fee_rounds_down_to_nothing(self):
        s = deposit(_pool(), UserPosition(), 39, fee_bps=25)
        assert s.fee_withheld == 0
        assert s.position.amount == 39

    def test_fee_on_burn_pool_rejected(self):
        with pytest.raises(InvalidPoolError):
            deposit(_pool(PoolKind.BURN), UserPosition(), 1_000, fee_bps=25)

    def test_whole_deposit_as_fee_rejected(self):
        with pytest.raises(InvalidAmountError):
            deposit(_pool(), UserPosition(), 1_000, fee_bps=10_000)


# ---------------------------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------------------------

class TestWithdraw:
    def test_partial(self):
        pool = _pool(total_staked=1_000, total_shares=1_000)
        s = withdraw(pool, UserPosition(amount=1_000), 400)
        assert s.principal_out == 400
        assert s.position.amount == 600
        assert s.pool.total_staked == 600
        assert s.pool.total_shares == 600

    def test_zero_amount_is_collect(self):
        pool = _pool(total_staked=10, total_shares=10, acc_reward_per_share=PRECISION)
        s = withdraw(pool, UserPosition(amount=10), 0)
        assert s.reward == 10
        assert s.principal_out == 0

    def test_exceeds_stake(self):
        pool = _pool(total_staked=100, total_shares=100)
        with pytest.raises(InsufficientBalanceError):
            withdraw(pool, UserPosition(amount=100), 101)

    def test_burn_pool_rejected(self):
        pool = _pool(PoolKind.BURN, total_staked=100, total_shares=100)
        with pytest.raises(InvalidPoolError):
            withdraw(pool, UserPosition(amount=100), 1)


class TestEmergencyWithdraw:
    def test_fee_withheld_and_reward_forfeited(self):
        pool = _pool(total_staked=1_000, total_shares=1_000, acc_reward_per_share=9 * PRECISION)
        s = emergency_withdraw(pool, UserPosition(amount=1_000), 25)
        assert s.principal_out == 998
        assert s.fee_withheld == 2
        assert s.reward == 0
        assert s.position == UserPosition()
        assert s.pool.total_staked == 0
        assert s.pool.total_shares == 0

    def test_burn_pool_rejected(self):
        with pytest.raises(InvalidPoolError):
            emergency_withdraw(_pool(PoolKind.BURN), UserPosition(), 25)


# ---------------------------------------------------------------------------
# Burn rounds
# ---------------------------------------------------------------------------

class TestRollForward:
    def _closed(self) -> Pool:
        return _pool(
            PoolKind.BURN,
            acc_reward_per_share=5 * PRECISION,
            round=1,
            round_close_acc=(3 * PRECISION,),
        )

    def test_closed_round_settles_at_close(self):
        pool = self._closed()
        pos = UserPosition(amount=10, reward_debt=PRECISION, round=0)
        assert pending_reward(pool, pos) == 20
        s = settle(pool, pos)
        assert s.reward == 20
        assert s.position == UserPosition(amount=0, reward_debt=5 * PRECISION, round=1)

    def test_closed_round_has_no_principal(self):
        pool = self._closed()
        assert principal_of(pool, UserPosition(amount=10, round=0)) == 0

    def test_current_round_untouched(self):
        pool = self._closed()
        pos = UserPosition(amount=3, reward_debt=4 * PRECISION, round=1)
        assert roll_forward(pool, pos) == (pos, 0)

    def test_position_ahead_rejected(self):
        with pytest.raises(LedgerArithmeticError):
            roll_forward(_pool(PoolKind.BURN), UserPosition(round=1))
