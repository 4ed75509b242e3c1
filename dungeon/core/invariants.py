"""Invariant checkers for the staking ledger.

Each `inv_*` function returns True when the invariant holds. `check_all()`
returns the list of violated invariant ids (empty = all pass) for a whole
registry snapshot; `check_transition()` does the same for one pool step.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Mapping, Sequence, Tuple

from .types import Address, Pool, PoolId, PoolKind, UserPosition

Positions = Mapping[Tuple[PoolId, Address], UserPosition]


def inv_pool_ids_ordinal(pools: Sequence[Pool], positions: Positions) -> bool:
    return all(pool.pool_id == idx for idx, pool in enumerate(pools))


def inv_shares_conserved(pools: Sequence[Pool], positions: Positions) -> bool:
    live: dict[PoolId, int] = defaultdict(int)
    for (pid, _user), pos in positions.items():
        if pid >= len(pools):
            return False
        if pos.round == pools[pid].round:
            live[pid] += pos.amount
    return all(live[pool.pool_id] == pool.total_shares for pool in pools)


def inv_normal_shares_match_principal(pools: Sequence[Pool], positions: Positions) -> bool:
    return all(p.total_shares == p.total_staked for p in pools if p.kind is PoolKind.NORMAL)


def inv_principal_iff_shares(pools: Sequence[Pool], positions: Positions) -> bool:
    return all((p.total_staked == 0) == (p.total_shares == 0) for p in pools)


def inv_round_close_monotone(pools: Sequence[Pool], positions: Positions) -> bool:
    for p in pools:
        prev = 0
        for acc in p.round_close_acc:
            if acc < prev:
                return False
            prev = acc
        if prev > p.acc_reward_per_share:
            return False
    return True


def inv_debt_not_ahead(pools: Sequence[Pool], positions: Positions) -> bool:
    for (pid, _user), pos in positions.items():
        if pid >= len(pools):
            return False
        pool = pools[pid]
        if pos.round > pool.round:
            return False
        ceiling = pool.acc_reward_per_share if pos.round == pool.round else pool.round_close_acc[pos.round]
        if pos.reward_debt > ceiling:
            return False
    return True


INVARIANT_REGISTRY: dict[str, Callable[[Sequence[Pool], Positions], bool]] = {
    "inv_pool_ids_ordinal": inv_pool_ids_ordinal,
    "inv_shares_conserved": inv_shares_conserved,
    "inv_normal_shares_match_principal": inv_normal_shares_match_principal,
    "inv_principal_iff_shares": inv_principal_iff_shares,
    "inv_round_close_monotone": inv_round_close_monotone,
    "inv_debt_not_ahead": inv_debt_not_ahead,
}


def check_all(pools: Sequence[Pool], positions: Positions) -> list[str]:
    """Return list of violated invariant ids (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(pools, positions)
    ]


def check_transition(before: Pool, after: Pool) -> list[str]:
    """Violations introduced by moving one pool from `before` to `after`."""
    violations: list[str] = []
    if after.pool_id != before.pool_id or after.kind is not before.kind:
        violations.append("inv_pool_identity_stable")
    if after.acc_reward_per_share < before.acc_reward_per_share:
        violations.append("inv_acc_monotone")
    if after.last_reward_block < before.last_reward_block:
        violations.append("inv_clock_monotone")
    if after.round < before.round:
        violations.append("inv_round_monotone")
    if (after.total_staked == 0) != (after.total_shares == 0):
        violations.append("inv_principal_iff_shares")
    if after.kind is PoolKind.NORMAL and after.total_shares != after.total_staked:
        violations.append("inv_normal_shares_match_principal")
    return violations
