"""Tests for dungeon/core/invariants.py: registry-wide and per-transition checks."""

from dataclasses import replace

from dungeon.core.invariants import INVARIANT_REGISTRY, check_all, check_transition
from dungeon.core.types import Pool, PoolKind, UserPosition


def _normal(pool_id: int = 0, **kwargs) -> Pool:
    base = Pool(pool_id=pool_id, kind=PoolKind.NORMAL, staked_assets=("LP",), reward_asset="DNG", weight=1)
    return replace(base, **kwargs)


def _burn(pool_id: int = 0, **kwargs) -> Pool:
    base = Pool(pool_id=pool_id, kind=PoolKind.BURN, staked_assets=("LP",), reward_asset="DNG", interval_blocks=10)
    return replace(base, **kwargs)


class TestConsistentRegistry:
    def test_empty_passes(self):
        assert check_all((), {}) == []

    def test_single_staker_passes(self):
        pools = (_normal(total_staked=100, total_shares=100, acc_reward_per_share=7),)
        positions = {(0, "bob"): UserPosition(amount=100, reward_debt=7)}
        assert check_all(pools, positions) == []

    def test_registry_has_6_invariants(self):
        assert len(INVARIANT_REGISTRY) == 6


class TestSharesConserved:
    def test_fail_when_positions_short(self):
        pools = (_normal(total_staked=100, total_shares=100),)
        positions = {(0, "bob"): UserPosition(amount=50)}
        assert "inv_shares_conserved" in check_all(pools, positions)

    def test_closed_round_positions_excluded(self):
        pools = (_burn(round=1, round_close_acc=(0,)),)
        positions = {(0, "bob"): UserPosition(amount=100, round=0)}
        assert "inv_shares_conserved" not in check_all(pools, positions)

    def test_position_for_unknown_pool(self):
        assert "inv_shares_conserved" in check_all((), {(3, "bob"): UserPosition()})


class TestPoolShape:
    def test_ids_ordinal(self):
        assert "inv_pool_ids_ordinal" in check_all((_normal(pool_id=1),), {})

    def test_normal_shares_match_principal(self):
        pools = (_normal(total_staked=100, total_shares=90),)
        positions = {(0, "bob"): UserPosition(amount=90)}
        assert check_all(pools, positions) == ["inv_normal_shares_match_principal"]

    def test_burn_shares_may_exceed_principal(self):
        pools = (_burn(total_staked=55, total_shares=60),)
        positions = {(0, "bob"): UserPosition(amount=60)}
        assert check_all(pools, positions) == []

    def test_shares_without_principal(self):
        pools = (_burn(total_staked=0, total_shares=10),)
        positions = {(0, "bob"): UserPosition(amount=10)}
        assert "inv_principal_iff_shares" in check_all(pools, positions)

    def test_round_close_monotone(self):
        pools = (_burn(acc_reward_per_share=10, round=2, round_close_acc=(5, 3)),)
        assert "inv_round_close_monotone" in check_all(pools, {})


class TestDebtNotAhead:
    def test_fail(self):
        pools = (_normal(total_staked=1, total_shares=1, acc_reward_per_share=5),)
        positions = {(0, "bob"): UserPosition(amount=1, reward_debt=6)}
        assert "inv_debt_not_ahead" in check_all(pools, positions)

    def test_closed_round_uses_close_value(self):
        pools = (_burn(acc_reward_per_share=10, round=1, round_close_acc=(4,)),)
        positions = {(0, "bob"): UserPosition(amount=1, reward_debt=6, round=0)}
        assert "inv_debt_not_ahead" in check_all(pools, positions)


# ---------------------------------------------------------------------------
# check_transition
# ---------------------------------------------------------------------------

class TestCheckTransition:
    def test_forward_step_passes(self):
        before = _normal(total_staked=10, total_shares=10, last_reward_block=5, acc_reward_per_share=1)
        after = replace(before, last_reward_block=9, acc_reward_per_share=4)
        assert check_transition(before, after) == []

    def test_acc_decrease(self):
        before = _normal(acc_reward_per_share=4)
        assert "inv_acc_monotone" in check_transition(before, replace(before, acc_reward_per_share=3))

    def test_clock_rewind(self):
        before = _normal(last_reward_block=9)
        assert "inv_clock_monotone" in check_transition(before, replace(before, last_reward_block=8))

    def test_identity_change(self):
        assert "inv_pool_identity_stable" in check_transition(_normal(pool_id=0), _normal(pool_id=1))

    def test_round_rewind(self):
        before = _burn(round=1, round_close_acc=(0,))
        assert "inv_round_monotone" in check_transition(before, _burn())
