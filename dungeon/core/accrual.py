"""Dispatch-table accrual for all pool kinds.

``accrue(pool, block, params)`` is the single "bring the pool up to date"
entry point. It is pure: the returned ``Accrual`` carries the next pool value
and the quantities the shell must mint and burn, but nothing is executed here.

Normal pools accrue every block at ``reward_per_block * weight / total_weight``.
Burn and MultiBurn pools accrue in whole intervals (see ``schedule``) and burn
principal alongside the mint. In both cases the accumulator is bumped with the
staker share against the share count held *before* any burn of this step.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable

from .fees import FeePolicy, FeeSplitParams, split_reward
from .math import bump, checked_mul, checked_sub, mul_div
from .schedule import schedule
from .types import Accrual, Pool, PoolKind


@dataclass(frozen=True)
class AccrualParams:
    """Ledger-wide inputs to an accrual step."""

    reward_per_block: int
    total_weight: int
    fees: FeeSplitParams = FeeSplitParams()
    # Base units per whole reward unit of a burn pool.
    reward_unit: int = 1


def normal_reward_per_block(pool: Pool, params: AccrualParams) -> int:
    """Per-block gross reward of a Normal pool (weight scaling applied first)."""
    if params.total_weight <= 0 or pool.weight == 0:
        return 0
    return mul_div(params.reward_per_block, pool.weight, params.total_weight)


def close_round(pool: Pool) -> Pool:
    """Retire every outstanding share once burns have exhausted the principal."""
    return replace(
        pool,
        total_shares=0,
        round=pool.round + 1,
        round_close_acc=pool.round_close_acc + (pool.acc_reward_per_share,),
    )


def accrue_normal(pool: Pool, block: int, params: AccrualParams) -> Accrual:
    if block <= pool.last_reward_block:
        return Accrual(pool=pool)
    if pool.total_staked == 0:
        return Accrual(pool=replace(pool, last_reward_block=block))

    elapsed = block - pool.last_reward_block
    gross = checked_mul(elapsed, normal_reward_per_block(pool, params))
    split = split_reward(gross, FeePolicy.DUAL, params.fees)
    next_pool = replace(
        pool,
        acc_reward_per_share=bump(pool.acc_reward_per_share, split.staker_amount, pool.total_shares),
        last_reward_block=block,
    )
    return Accrual(pool=next_pool, gross=gross, split=split)


def accrue_burn(pool: Pool, block: int, params: AccrualParams) -> Accrual:
    if block <= pool.last_reward_block:
        return Accrual(pool=pool)
    if pool.total_staked == 0:
        # Nothing staked: restart the interval clock instead of minting.
        return Accrual(pool=replace(pool, last_reward_block=block))

    outcome = schedule(pool, block, params.reward_unit)
    if outcome.intervals == 0:
        return Accrual(pool=pool)

    split = split_reward(outcome.gross, pool.fee_policy, params.fees)
    next_pool = replace(
        pool,
        acc_reward_per_share=bump(pool.acc_reward_per_share, split.staker_amount, pool.total_shares),
        total_staked=checked_sub(pool.total_staked, outcome.burn),
        last_reward_block=outcome.next_reward_block,
    )
    if next_pool.total_staked == 0:
        next_pool = close_round(next_pool)
    return Accrual(
        pool=next_pool,
        intervals=outcome.intervals,
        gross=outcome.gross,
        split=split,
        burned=outcome.burn,
    )


AccrueFn = Callable[[Pool, int, AccrualParams], Accrual]

ACCRUE_DISPATCH: dict[PoolKind, AccrueFn] = {
    PoolKind.NORMAL: accrue_normal,
    PoolKind.BURN: accrue_burn,
    PoolKind.MULTI_BURN: accrue_burn,
}


def accrue(pool: Pool, block: int, params: AccrualParams) -> Accrual:
    """Bring `pool` up to `block`."""
    fn = ACCRUE_DISPATCH.get(pool.kind)
    if fn is None:
        raise ValueError(f"unknown pool kind: {pool.kind!r}")
    return fn(pool, block, params)
