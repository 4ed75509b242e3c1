"""Data types for the staking ledger kernels.

All types are frozen dataclasses (immutable); transitions build new values
with `dataclasses.replace()`.

Units/conventions:
- amounts are raw integer token units (no implicit decimals),
- `acc_reward_per_share` is scaled by `math.PRECISION`,
- `*_bps` rates are basis points (1/10_000),
- block numbers are the host ledger's monotonically increasing counter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from .errors import InvalidAmountError
from .fees import FeePolicy, FeeSplitResult

Address = str
AssetId = str
PoolId = int


@unique
class PoolKind(Enum):
    NORMAL = "normal"
    BURN = "burn"
    MULTI_BURN = "multi_burn"


def _require_int(value: object, *, name: str, minimum: int = 0) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < minimum:
        raise InvalidAmountError(f"{name} must be >= {minimum}: {value}")


@dataclass(frozen=True)
class Pool:
    """One staking pool: immutable terms plus running totals.

    `total_staked` is principal held per underlying asset; `total_shares` is the
    sum of position amounts in the current round. The two only diverge after a
    burn (Normal pools never burn, so there they stay equal).
    """

    pool_id: PoolId
    kind: PoolKind
    staked_assets: tuple[AssetId, ...]
    reward_asset: AssetId

    # Normal terms
    weight: int = 0

    # Burn / MultiBurn terms
    interval_blocks: int = 0
    reward_per_interval: int = 0
    burn_per_interval: int = 0

    # Running state
    total_staked: int = 0
    total_shares: int = 0
    last_reward_block: int = 0
    acc_reward_per_share: int = 0

    # Burn rounds: a round closes when burns exhaust the principal.
    round: int = 0
    round_close_acc: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        _require_int(self.pool_id, name="pool_id")
        if not isinstance(self.kind, PoolKind):
            raise TypeError("kind must be a PoolKind")
        if not self.staked_assets or not all(isinstance(a, str) and a for a in self.staked_assets):
            raise InvalidAmountError("staked_assets must be non-empty strings")
        if len(set(self.staked_assets)) != len(self.staked_assets):
            raise InvalidAmountError("staked_assets must be distinct")
        if not isinstance(self.reward_asset, str) or not self.reward_asset:
            raise InvalidAmountError("reward_asset must be a non-empty string")

        if self.kind is PoolKind.MULTI_BURN:
            if len(self.staked_assets) < 2:
                raise InvalidAmountError("multi-burn pools need at least two staked assets")
        elif len(self.staked_assets) != 1:
            raise InvalidAmountError(f"{self.kind.value} pools take exactly one staked asset")

        _require_int(self.weight, name="weight")
        if self.is_burn:
            _require_int(self.interval_blocks, name="interval_blocks", minimum=1)
            _require_int(self.reward_per_interval, name="reward_per_interval")
            _require_int(self.burn_per_interval, name="burn_per_interval")

        for name in ("total_staked", "total_shares", "last_reward_block", "acc_reward_per_share", "round"):
            _require_int(getattr(self, name), name=name)
        if self.total_shares == 0 and self.total_staked != 0:
            raise InvalidAmountError("principal without shares")
        if len(self.round_close_acc) != self.round:
            raise InvalidAmountError("round_close_acc must hold one entry per closed round")

    @property
    def is_burn(self) -> bool:
        return self.kind is not PoolKind.NORMAL

    @property
    def fee_policy(self) -> FeePolicy:
        return FeePolicy.SINGLE if self.kind is PoolKind.MULTI_BURN else FeePolicy.DUAL


@dataclass(frozen=True)
class UserPosition:
    """A participant's shares in one pool and their settlement checkpoint."""

    amount: int = 0
    reward_debt: int = 0
    round: int = 0

    def __post_init__(self) -> None:
        _require_int(self.amount, name="amount")
        _require_int(self.reward_debt, name="reward_debt")
        _require_int(self.round, name="round")


@dataclass(frozen=True)
class Accrual:
    """Outcome of bringing a pool up to date at a given block."""

    pool: Pool
    intervals: int = 0
    gross: int = 0
    split: FeeSplitResult | None = None
    burned: int = 0

    @property
    def minted(self) -> bool:
        return self.gross > 0


@dataclass(frozen=True)
class Settlement:
    """Position transition produced by one deposit / withdraw / collect."""

    pool: Pool
    position: UserPosition
    reward: int = 0
    principal_in: int = 0
    principal_out: int = 0
    fee_withheld: int = 0
