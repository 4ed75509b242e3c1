"""
Pool registry: the ordered pool list plus the (pool_id, user) -> position table.

Pools and positions are frozen values, so a snapshot is a shallow copy of the
two containers and restoring it undoes every mutation made since.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Tuple

from ..core.errors import InvalidPoolError
from ..core.types import Address, Pool, PoolId, PoolKind, UserPosition


@dataclass(frozen=True)
class RegistrySnapshot:
    pools: Tuple[Pool, ...]
    positions: Mapping[Tuple[PoolId, Address], UserPosition]
    operator: Address


@dataclass
class PoolRegistry:
    """
    Mutable registry of pools and positions.

    Pool ids are list indices: assigned on `add`, never reused.
    Positions are created implicitly on first write and never removed.
    """

    operator: Address
    _pools: List[Pool] = field(default_factory=list)
    _positions: Dict[Tuple[PoolId, Address], UserPosition] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._pools)

    def __iter__(self) -> Iterator[Pool]:
        return iter(tuple(self._pools))

    @property
    def next_pool_id(self) -> PoolId:
        return len(self._pools)

    def add(self, pool: Pool) -> PoolId:
        if pool.pool_id != self.next_pool_id:
            raise InvalidPoolError(f"pool id {pool.pool_id} is not the next ordinal {self.next_pool_id}")
        self._pools.append(pool)
        return pool.pool_id

    def get(self, pool_id: PoolId, kind: PoolKind | None = None) -> Pool:
        """Pool by id; raises InvalidPoolError if unknown or of the wrong kind."""
        if not isinstance(pool_id, int) or isinstance(pool_id, bool) or not (0 <= pool_id < len(self._pools)):
            raise InvalidPoolError(f"unknown pool id: {pool_id!r}")
        pool = self._pools[pool_id]
        if kind is not None and pool.kind is not kind:
            raise InvalidPoolError(f"pool {pool_id} is a {pool.kind.value} pool, not {kind.value}")
        return pool

    def put(self, pool: Pool) -> None:
        current = self.get(pool.pool_id)
        if current.kind is not pool.kind:
            raise InvalidPoolError(f"pool {pool.pool_id} cannot change kind")
        self._pools[pool.pool_id] = pool

    def position(self, pool_id: PoolId, user: Address) -> UserPosition:
        """Position for (pool_id, user); a fresh zero position if never touched."""
        self.get(pool_id)
        return self._positions.get((pool_id, user), UserPosition())

    def set_position(self, pool_id: PoolId, user: Address, position: UserPosition) -> None:
        self.get(pool_id)
        self._positions[(pool_id, user)] = position

    def pools(self) -> Tuple[Pool, ...]:
        return tuple(self._pools)

    def positions(self) -> Dict[Tuple[PoolId, Address], UserPosition]:
        return dict(self._positions)

    def total_weight(self) -> int:
        return sum(p.weight for p in self._pools if p.kind is PoolKind.NORMAL)

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(pools=tuple(self._pools), positions=dict(self._positions), operator=self.operator)

    def restore(self, snap: RegistrySnapshot) -> None:
        self._pools = list(snap.pools)
        self._positions = dict(snap.positions)
        self.operator = snap.operator

    def __repr__(self) -> str:
        return f"PoolRegistry({len(self._pools)} pools, {len(self._positions)} positions)"
