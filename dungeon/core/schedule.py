"""
Interval scheduling for burn-variant pools.

Burn pools settle in whole intervals only: a partially elapsed interval is
left on the clock (`last_reward_block` advances by consumed intervals, not to
the current block) so it accumulates into a later settlement.
"""

from __future__ import annotations

from dataclasses import dataclass

from .math import checked_add, checked_mul
from .types import Pool


@dataclass(frozen=True)
class IntervalOutcome:
    intervals: int
    gross: int
    burn: int
    next_reward_block: int


def elapsed_intervals(last_reward_block: int, block: int, interval_blocks: int) -> int:
    """Whole intervals between `last_reward_block` and `block` (0 if not past)."""
    if interval_blocks <= 0:
        raise ValueError(f"interval_blocks must be positive: {interval_blocks}")
    if block <= last_reward_block:
        return 0
    return (block - last_reward_block) // interval_blocks


def schedule(pool: Pool, block: int, reward_unit: int = 1) -> IntervalOutcome:
    """Mint and burn quantities owed by `pool` at `block`.

    `reward_per_interval` is counted in `reward_unit` base units of the reward
    token; `burn_per_interval` is in raw principal units. The burn is clamped to
    the principal on hand.
    """
    if not isinstance(reward_unit, int) or isinstance(reward_unit, bool) or reward_unit < 1:
        raise ValueError(f"reward_unit must be a positive int: {reward_unit}")
    if not pool.is_burn:
        raise ValueError(f"pool {pool.pool_id} is not a burn pool")

    intervals = elapsed_intervals(pool.last_reward_block, block, pool.interval_blocks)
    if intervals == 0:
        return IntervalOutcome(intervals=0, gross=0, burn=0, next_reward_block=pool.last_reward_block)

    gross = checked_mul(checked_mul(intervals, pool.reward_per_interval), reward_unit)
    burn = min(checked_mul(intervals, pool.burn_per_interval), pool.total_staked)
    consumed = checked_mul(intervals, pool.interval_blocks)
    return IntervalOutcome(
        intervals=intervals,
        gross=gross,
        burn=burn,
        next_reward_block=checked_add(pool.last_reward_block, consumed),
    )
