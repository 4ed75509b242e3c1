"""
Per-participant position kernel.

Pure functions over (Pool, UserPosition) producing a `Settlement`:
- Inputs are already range-checked integers.
- Outputs carry the next pool/position plus the reward to pay and the
  principal to move; the shell performs the transfers.

Every transition settles pending reward first and leaves the position's
`reward_debt` equal to the pool accumulator, so pending is zero right after.
"""

from __future__ import annotations

from dataclasses import replace

from .errors import InsufficientBalanceError, InvalidAmountError, InvalidPoolError, LedgerArithmeticError
from .math import accrued, bps_of, checked_add, checked_sub, mul_div
from .types import Pool, PoolKind, Settlement, UserPosition


def roll_forward(pool: Pool, position: UserPosition) -> tuple[UserPosition, int]:
    """Move a position from a closed burn round into the current round.

    Returns the rolled position and the reward it earned up to the close.
    Shares of a closed round are worthless (their principal was burned).
    """
    if position.round == pool.round:
        return position, 0
    if position.round > pool.round:
        raise LedgerArithmeticError("position round ahead of pool round")
    owed = accrued(position.amount, pool.round_close_acc[position.round], position.reward_debt)
    return UserPosition(amount=0, reward_debt=pool.acc_reward_per_share, round=pool.round), owed


def pending_reward(pool: Pool, position: UserPosition) -> int:
    """Reward owed to `position` at the pool's current accumulator value."""
    rolled, owed = roll_forward(pool, position)
    return owed + accrued(rolled.amount, pool.acc_reward_per_share, rolled.reward_debt)


def principal_of(pool: Pool, position: UserPosition) -> int:
    """Principal backing `position` (per underlying asset)."""
    rolled, _ = roll_forward(pool, position)
    if rolled.amount == 0 or pool.total_shares == 0:
        return 0
    return mul_div(rolled.amount, pool.total_staked, pool.total_shares)


def shares_for_deposit(pool: Pool, amount: int) -> int:
    if pool.total_shares == 0:
        return amount
    return mul_div(amount, pool.total_shares, pool.total_staked)


def _checkpoint(pool: Pool, amount: int) -> UserPosition:
    return UserPosition(amount=amount, reward_debt=pool.acc_reward_per_share, round=pool.round)


def settle(pool: Pool, position: UserPosition) -> Settlement:
    """Pay out pending reward without moving principal (collect)."""
    rolled, owed = roll_forward(pool, position)
    reward = owed + accrued(rolled.amount, pool.acc_reward_per_share, rolled.reward_debt)
    return Settlement(pool=pool, position=_checkpoint(pool, rolled.amount), reward=reward)


def deposit(pool: Pool, position: UserPosition, amount: int, fee_bps: int = 0) -> Settlement:
    """Stake `amount`. A `fee_bps` cut is withheld from Normal-pool deposits only."""
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidAmountError(f"deposit amount must be a positive int, got {amount!r}")
    if fee_bps and pool.kind is not PoolKind.NORMAL:
        raise InvalidPoolError(f"pool {pool.pool_id} ({pool.kind.value}) does not take a deposit fee")

    collected = settle(pool, position)
    fee = bps_of(amount, fee_bps)
    staked = amount - fee
    shares = shares_for_deposit(pool, staked)
    if shares == 0:
        raise InvalidAmountError(f"deposit of {amount} is worth zero shares")

    next_pool = replace(
        pool,
        total_staked=checked_add(pool.total_staked, staked),
        total_shares=checked_add(pool.total_shares, shares),
    )
    return Settlement(
        pool=next_pool,
        position=_checkpoint(next_pool, checked_add(collected.position.amount, shares)),
        reward=collected.reward,
        principal_in=amount,
        fee_withheld=fee,
    )


def withdraw(pool: Pool, position: UserPosition, amount: int) -> Settlement:
    if pool.kind is not PoolKind.NORMAL:
        raise InvalidPoolError(f"pool {pool.pool_id} ({pool.kind.value}) does not support withdraw")
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvalidAmountError(f"withdraw amount must be a non-negative int, got {amount!r}")

    collected = settle(pool, position)
    if amount > collected.position.amount:
        raise InsufficientBalanceError(
            f"withdraw {amount} exceeds staked {collected.position.amount} in pool {pool.pool_id}"
        )

    next_pool = replace(
        pool,
        total_staked=checked_sub(pool.total_staked, amount),
        total_shares=checked_sub(pool.total_shares, amount),
    )
    return Settlement(
        pool=next_pool,
        position=_checkpoint(next_pool, collected.position.amount - amount),
        reward=collected.reward,
        principal_out=amount,
    )


def emergency_withdraw(pool: Pool, position: UserPosition, fee_bps: int) -> Settlement:
    """Return principal minus the emergency fee; pending reward is forfeited."""
    if pool.kind is not PoolKind.NORMAL:
        raise InvalidPoolError(f"pool {pool.pool_id} ({pool.kind.value}) does not support emergency withdraw")

    amount = position.amount
    fee = bps_of(amount, fee_bps)
    next_pool = replace(
        pool,
        total_staked=checked_sub(pool.total_staked, amount),
        total_shares=checked_sub(pool.total_shares, amount),
    )
    return Settlement(
        pool=next_pool,
        position=UserPosition(amount=0, reward_debt=0, round=pool.round),
        principal_out=amount - fee,
        fee_withheld=fee,
    )
