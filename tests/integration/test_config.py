"""Tests for dungeon/config.py."""

import pytest

from dungeon.config import LedgerConfig, load_config


def _base(**kwargs):
    d = {"owner": "alice", "operator": "dev", "treasury": "chest"}
    d.update(kwargs)
    return d


class TestLedgerConfig:
    def test_defaults(self):
        cfg = LedgerConfig(**_base())
        assert cfg.start_block == 1
        assert cfg.emergency_fee_bps == 25
        assert cfg.fee_params.dev_fee_bps == 500
        assert cfg.fee_params.treasury_fee_bps == 500
        assert cfg.deposit_fee_bps == 0
        assert cfg.reward_unit == 10**15

    def test_empty_role(self):
        with pytest.raises(ValueError):
            LedgerConfig(**_base(owner=" "))

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            LedgerConfig(**_base(start_block=True))

    def test_emergency_fee_range(self):
        with pytest.raises(ValueError):
            LedgerConfig(**_base(emergency_fee_bps=10_001))

    def test_deposit_fee_range(self):
        with pytest.raises(ValueError):
            LedgerConfig(**_base(deposit_fee_bps=-1))
        with pytest.raises(TypeError):
            LedgerConfig(**_base(deposit_fee_bps=True))

    def test_reward_unit_positive(self):
        with pytest.raises(ValueError):
            LedgerConfig(**_base(reward_unit=0))

    def test_fee_legs_over_total(self):
        with pytest.raises(ValueError):
            LedgerConfig(**_base(dev_fee_bps=9_000, treasury_fee_bps=2_000))

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            LedgerConfig.from_mapping(_base(reward_rate=1))


class TestLoadConfig:
    def test_yaml(self, tmp_path):
        p = tmp_path / "ledger.yaml"
        p.write_text(
            "owner: alice\n"
            "operator: dev\n"
            "treasury: chest\n"
            "reward_per_block: 200000000000000000000\n"
            "start_block: 1\n"
            "emergency_fee_bps: 25\n",
            encoding="utf-8",
        )
        cfg = load_config(p)
        assert cfg.reward_per_block == 200 * 10**18
        assert cfg.treasury == "chest"

    def test_non_mapping(self, tmp_path):
        p = tmp_path / "ledger.yaml"
        p.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(TypeError):
            load_config(p)
