"""
Reward fee splitting (deterministic, integer-only).

Minted reward is divided three ways: staker (accumulator), operator and
treasury. The fee legs are floor-rounded and the staker leg absorbs the
remainder, so the three legs always sum to the gross amount.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from .errors import LedgerArithmeticError
from .math import BPS_DENOM, bps_of


@unique
class FeePolicy(Enum):
    """Dual-fee for Normal and Burn pools, single-fee for MultiBurn pools."""

    DUAL = "dual"
    SINGLE = "single"


@dataclass(frozen=True)
class FeeSplitParams:
    dev_fee_bps: int = 500
    treasury_fee_bps: int = 500
    multi_burn_dev_fee_bps: int = 500

    def __post_init__(self) -> None:
        for name, v in (
            ("dev_fee_bps", self.dev_fee_bps),
            ("treasury_fee_bps", self.treasury_fee_bps),
            ("multi_burn_dev_fee_bps", self.multi_burn_dev_fee_bps),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= BPS_DENOM):
                raise ValueError(f"{name} must be in [0, {BPS_DENOM}]: {v}")
        total = self.dev_fee_bps + self.treasury_fee_bps
        if total > BPS_DENOM:
            raise ValueError(f"dual-fee bps must not exceed {BPS_DENOM}, got {total}")


@dataclass(frozen=True)
class FeeSplitResult:
    staker_amount: int
    operator_amount: int
    treasury_amount: int

    def __post_init__(self) -> None:
        for name, v in (
            ("staker_amount", self.staker_amount),
            ("operator_amount", self.operator_amount),
            ("treasury_amount", self.treasury_amount),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")

    @property
    def gross(self) -> int:
        return self.staker_amount + self.operator_amount + self.treasury_amount


def split_reward(gross: int, policy: FeePolicy, params: FeeSplitParams = FeeSplitParams()) -> FeeSplitResult:
    """
    Split `gross` minted reward under `policy`.

    - DUAL:   operator = floor(gross * dev_bps / 1e4), treasury = floor(gross * treasury_bps / 1e4)
    - SINGLE: operator = floor(gross * multi_burn_dev_bps / 1e4), treasury = 0
    """
    if not isinstance(gross, int) or isinstance(gross, bool) or gross < 0:
        raise ValueError(f"gross must be a non-negative int, got {gross}")

    if policy is FeePolicy.DUAL:
        operator = bps_of(gross, params.dev_fee_bps)
        treasury = bps_of(gross, params.treasury_fee_bps)
    elif policy is FeePolicy.SINGLE:
        operator = bps_of(gross, params.multi_burn_dev_fee_bps)
        treasury = 0
    else:
        raise ValueError(f"unknown fee policy: {policy!r}")

    staker = gross - operator - treasury
    if staker < 0:
        raise LedgerArithmeticError(f"fee split over-distributed: {operator} + {treasury} > {gross}")

    return FeeSplitResult(staker_amount=staker, operator_amount=operator, treasury_amount=treasury)
