"""State serialization and state-root hashing for the pool registry.

Persisted layout: an ordered list of pool records plus a two-level mapping
``positions[str(pool_id)][user] -> position``.

Round-trip property (tested): ``state_from_dict(state_to_dict(r))`` reproduces
every pool, position and the operator of ``r``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from typing import Any, Mapping

from ..core.types import Pool, PoolKind, UserPosition
from .registry import PoolRegistry

SNAPSHOT_VERSION = 1

_POOL_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(Pool))
_POSITION_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(UserPosition))


def pool_to_dict(pool: Pool) -> dict[str, Any]:
    out: dict[str, Any] = {name: getattr(pool, name) for name in _POOL_FIELDS}
    out["kind"] = pool.kind.value
    out["staked_assets"] = list(pool.staked_assets)
    out["round_close_acc"] = list(pool.round_close_acc)
    return out


def pool_from_dict(d: Mapping[str, Any]) -> Pool:
    kwargs = {name: d[name] for name in _POOL_FIELDS}
    kwargs["kind"] = PoolKind(d["kind"])
    kwargs["staked_assets"] = tuple(d["staked_assets"])
    kwargs["round_close_acc"] = tuple(int(v) for v in d["round_close_acc"])
    return Pool(**kwargs)


def position_to_dict(position: UserPosition) -> dict[str, int]:
    return {name: getattr(position, name) for name in _POSITION_FIELDS}


def position_from_dict(d: Mapping[str, Any]) -> UserPosition:
    return UserPosition(**{name: d[name] for name in _POSITION_FIELDS})


def state_to_dict(registry: PoolRegistry) -> dict[str, Any]:
    positions: dict[str, dict[str, dict[str, int]]] = {}
    for (pid, user), pos in sorted(registry.positions().items()):
        positions.setdefault(str(pid), {})[user] = position_to_dict(pos)
    return {
        "version": SNAPSHOT_VERSION,
        "operator": registry.operator,
        "pools": [pool_to_dict(p) for p in registry.pools()],
        "positions": positions,
    }


def state_from_dict(d: Mapping[str, Any]) -> PoolRegistry:
    """Rebuild a registry. Raises KeyError/TypeError/ValueError on malformed input."""
    if d.get("version") != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {d.get('version')!r}")
    registry = PoolRegistry(operator=str(d["operator"]))
    for raw in d["pools"]:
        registry.add(pool_from_dict(raw))
    for pid_str, by_user in d["positions"].items():
        for user, raw in by_user.items():
            registry.set_position(int(pid_str), user, position_from_dict(raw))
    return registry


def _require_canonical(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _require_canonical(v)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _require_canonical(item)


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys, no whitespace, no NaN and no floats."""
    _require_canonical(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode(
        "utf-8"
    )


def compute_state_root(registry: PoolRegistry) -> str:
    """sha256 over a domain tag and the canonical snapshot, as 0x-hex."""
    tag = b"dungeon:state_root:v" + str(SNAPSHOT_VERSION).encode("ascii") + b"\x00"
    return "0x" + hashlib.sha256(tag + canonical_json_bytes(state_to_dict(registry))).hexdigest()
