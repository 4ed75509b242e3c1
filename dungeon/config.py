"""
Ledger configuration.

`LedgerConfig` is a frozen dataclass validated on construction. It can be
built in code or loaded from a YAML mapping (`load_config`), e.g.:

    owner: alice
    operator: dev
    treasury: chest
    reward_per_block: 200000000000000000000
    start_block: 1
    emergency_fee_bps: 25
    deposit_fee_bps: 0
    reward_unit: 1000000000000000
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .core.fees import FeeSplitParams
from .core.math import BPS_DENOM, MAX_UINT256


@dataclass(frozen=True)
class LedgerConfig:
    # Roles
    owner: str
    operator: str
    treasury: str

    # Normal-pool emission: gross reward per block shared by weight.
    reward_per_block: int = 1_000_000_000_000_000_000
    # First block at which pools start accruing.
    start_block: int = 1

    # Fee basis points
    dev_fee_bps: int = 500
    treasury_fee_bps: int = 500
    multi_burn_dev_fee_bps: int = 500
    emergency_fee_bps: int = 25
    # Withheld from Normal-pool deposits and sent to the treasury.
    deposit_fee_bps: int = 0

    # Burn-pool `reward_per_interval` is quoted in units of 1e15 base units.
    reward_unit: int = 1_000_000_000_000_000

    def __post_init__(self) -> None:
        for name in ("owner", "operator", "treasury"):
            v = getattr(self, name)
            if not isinstance(v, str) or not v.strip():
                raise ValueError(f"{name} must be a non-empty string")
        for name in ("reward_per_block", "start_block"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= MAX_UINT256):
                raise ValueError(f"{name} must be in [0, 2**256): {v}")
        for name in ("emergency_fee_bps", "deposit_fee_bps"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= BPS_DENOM):
                raise ValueError(f"{name} must be in [0, {BPS_DENOM}]: {v}")
        if not isinstance(self.reward_unit, int) or isinstance(self.reward_unit, bool):
            raise TypeError("reward_unit must be an int")
        if not (1 <= self.reward_unit <= MAX_UINT256):
            raise ValueError(f"reward_unit must be in [1, 2**256): {self.reward_unit}")
        # Delegates range checks for the reward fee legs.
        self.fee_params

    @property
    def fee_params(self) -> FeeSplitParams:
        return FeeSplitParams(
            dev_fee_bps=self.dev_fee_bps,
            treasury_fee_bps=self.treasury_fee_bps,
            multi_burn_dev_fee_bps=self.multi_burn_dev_fee_bps,
        )

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> "LedgerConfig":
        if not isinstance(obj, Mapping):
            raise TypeError("config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(obj) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(map(str, unknown))}")
        return cls(**dict(obj))


def load_config(path: Path | str) -> LedgerConfig:
    """Load a `LedgerConfig` from a YAML file."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    return LedgerConfig.from_mapping(obj)
