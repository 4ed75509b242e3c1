"""Tests for dungeon/state/snapshot.py: persistence round trip and state root."""

from __future__ import annotations

import json

import pytest

from dungeon.core.types import Pool, PoolKind, UserPosition
from dungeon.state.registry import PoolRegistry
from dungeon.state.snapshot import canonical_json_bytes, compute_state_root, state_from_dict, state_to_dict


def _registry(order: tuple[str, ...] = ("bob", "carol")) -> PoolRegistry:
    r = PoolRegistry(operator="dev")
    r.add(
        Pool(
            pool_id=0,
            kind=PoolKind.NORMAL,
            staked_assets=("LP",),
            reward_asset="DNG",
            weight=100,
            total_staked=1_000,
            total_shares=1_000,
            last_reward_block=7,
            acc_reward_per_share=123,
        )
    )
    r.add(
        Pool(
            pool_id=1,
            kind=PoolKind.MULTI_BURN,
            staked_assets=("A", "B"),
            reward_asset="DNG",
            interval_blocks=10,
            reward_per_interval=10**15,
            burn_per_interval=5 * 10**18,
            last_reward_block=30,
            acc_reward_per_share=99,
            round=1,
            round_close_acc=(99,),
        )
    )
    amounts = {"bob": 600, "carol": 400}
    for user in order:
        r.set_position(0, user, UserPosition(amount=amounts[user], reward_debt=100))
    r.set_position(1, "bob", UserPosition(amount=60, reward_debt=5, round=0))
    return r


class TestRoundTrip:
    def test_round_trip(self):
        r = _registry()
        restored = state_from_dict(state_to_dict(r))
        assert restored.pools() == r.pools()
        assert restored.positions() == r.positions()
        assert restored.operator == r.operator

    def test_survives_json(self):
        r = _registry()
        restored = state_from_dict(json.loads(json.dumps(state_to_dict(r))))
        assert restored.pools() == r.pools()

    def test_layout(self):
        d = state_to_dict(_registry())
        assert d["version"] == 1
        assert [p["kind"] for p in d["pools"]] == ["normal", "multi_burn"]
        assert d["positions"]["0"]["carol"] == {"amount": 400, "reward_debt": 100, "round": 0}

    def test_unsupported_version(self):
        d = state_to_dict(_registry())
        d["version"] = 2
        with pytest.raises(ValueError):
            state_from_dict(d)


class TestStateRoot:
    def test_format(self):
        root = compute_state_root(_registry())
        assert root.startswith("0x")
        assert len(root) == 66

    def test_insertion_order_irrelevant(self):
        assert compute_state_root(_registry(("bob", "carol"))) == compute_state_root(_registry(("carol", "bob")))

    def test_changes_with_position(self):
        r = _registry()
        before = compute_state_root(r)
        r.set_position(0, "bob", UserPosition(amount=600, reward_debt=101))
        assert compute_state_root(r) != before

    def test_floats_rejected(self):
        with pytest.raises(TypeError):
            canonical_json_bytes({"x": 1.5})
