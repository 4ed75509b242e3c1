"""
Staking ledger: the imperative shell around the pure accrual/position kernels.

Each mutating operation runs the same sequence:

1. Guard: reject re-entry and check the caller's role.
2. Compute: accrue the pool at the current block and apply the position
   transition (pure; nothing is mutated yet).
3. Check invariants on the computed pool.
4. Effects: commit pool and position to the registry.
5. Interactions: pull principal, mint rewards and fees, burn principal,
   pay the caller, release principal.

Any exception from steps 2-5 restores the registry snapshot taken at step 1
and propagates; collaborator failures surface as `TransferFailure`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Union

from ..config import LedgerConfig
from ..core.accrual import AccrualParams, accrue
from ..core.errors import AccessControlError, InvalidPoolError, LedgerInvariantError, ReentrancyError
from ..core.invariants import check_all, check_transition
from ..core.positions import deposit, emergency_withdraw, pending_reward, principal_of, settle, withdraw
from ..core.types import Accrual, Pool, PoolId, PoolKind, Settlement, UserPosition
from ..state.registry import PoolRegistry, RegistrySnapshot
from .custody import StakedTokenCustody, checked_call
from .tokens import RewardMinter, RewardToken, StakedToken

logger = logging.getLogger(__name__)

AssetRef = Union[str, StakedToken]
Transition = Callable[[Pool, UserPosition], Settlement]


def _asset_id(ref: AssetRef) -> str:
    return ref if isinstance(ref, str) else ref.asset_id


class StakingLedger:
    """
    Pools, positions and reward emission for one reward asset.

    `clock` returns the current block number; it must not change during a call.
    """

    def __init__(
        self,
        config: LedgerConfig,
        *,
        address: str,
        reward_token: RewardToken,
        reward_minter: RewardMinter,
        clock: Callable[[], int],
    ) -> None:
        self.config = config
        self.address = address
        self.reward_token = reward_token
        self._minter = reward_minter
        self._clock = clock
        self.registry = PoolRegistry(operator=config.operator)
        self.custody = StakedTokenCustody(address)
        self._entered = False

    # -- Roles ----------------------------------------------------------------

    @property
    def operator(self) -> str:
        return self.registry.operator

    @property
    def treasury(self) -> str:
        return self.config.treasury

    @property
    def reward_asset(self) -> str:
        return self.reward_token.asset_id

    def set_operator(self, sender: str, new_operator: str) -> None:
        """Hand the operator role (and its fee stream) to `new_operator`."""
        with self._operation("set_operator"):
            if sender != self.registry.operator:
                raise AccessControlError("set_operator: caller is not the operator")
            if not isinstance(new_operator, str) or not new_operator:
                raise ValueError("new_operator must be a non-empty string")
            self.registry.operator = new_operator
        logger.info("operator changed from %s to %s", sender, new_operator)

    def _require_owner(self, sender: str) -> None:
        if sender != self.config.owner:
            raise AccessControlError("caller is not the owner")

    # -- Guard / atomicity ----------------------------------------------------

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        if self._entered:
            raise ReentrancyError(f"{name}: re-entrant call")
        self._entered = True
        snap = self.registry.snapshot()
        try:
            yield
        except Exception:
            self.registry.restore(snap)
            logger.warning("%s rolled back", name)
            raise
        finally:
            self._entered = False

    def snapshot(self) -> RegistrySnapshot:
        return self.registry.snapshot()

    def restore(self, snap: RegistrySnapshot) -> None:
        self.registry.restore(snap)

    def _block(self) -> int:
        block = self._clock()
        if not isinstance(block, int) or isinstance(block, bool) or block < 0:
            raise ValueError(f"clock returned an invalid block number: {block!r}")
        return block

    # -- Accrual --------------------------------------------------------------

    def _accrual_params(self) -> AccrualParams:
        return AccrualParams(
            reward_per_block=self.config.reward_per_block,
            total_weight=self.registry.total_weight(),
            fees=self.config.fee_params,
            reward_unit=self.config.reward_unit,
        )

    def _accrue(self, pool: Pool, block: int) -> Accrual:
        accrual = accrue(pool, block, self._accrual_params())
        violations = check_transition(pool, accrual.pool)
        if violations:
            raise LedgerInvariantError(violations)
        return accrual

    def _update_pools(self, kinds: Optional[Sequence[PoolKind]] = None) -> List[Accrual]:
        """Accrue and commit every pool (of `kinds`); returns the accruals to execute."""
        block = self._block()
        accruals: List[Accrual] = []
        for pool in self.registry:
            if kinds is not None and pool.kind not in kinds:
                continue
            accrual = self._accrue(pool, block)
            self.registry.put(accrual.pool)
            accruals.append(accrual)
        return accruals

    def _execute_accrual(self, accrual: Accrual) -> None:
        split = accrual.split
        if split is not None and accrual.minted:
            logger.debug(
                "pool %d accrued %d (staker=%d operator=%d treasury=%d) over %s",
                accrual.pool.pool_id,
                accrual.gross,
                split.staker_amount,
                split.operator_amount,
                split.treasury_amount,
                f"{accrual.intervals} intervals" if accrual.pool.is_burn else "blocks",
            )
            self._mint(self.address, split.staker_amount)
            self._mint(self.registry.operator, split.operator_amount)
            self._mint(self.config.treasury, split.treasury_amount)
        if accrual.burned:
            self.custody.burn(accrual.pool.staked_assets, accrual.burned)

    def _mint(self, to: str, amount: int) -> None:
        if amount:
            checked_call(f"mint({to}, {amount})", self._minter.mint, to, amount)

    def _pay_reward(self, user: str, amount: int) -> None:
        logger.debug("paying %d %s to %s", amount, self.reward_asset, user)
        checked_call(
            f"reward transfer({user}, {amount})",
            self.reward_token.transfer,
            self.address,
            user,
            amount,
        )

    def mass_update_pools(self) -> None:
        """Bring every pool up to the current block."""
        with self._operation("mass_update_pools"):
            for accrual in self._update_pools():
                self._execute_accrual(accrual)

    # -- Pool creation --------------------------------------------------------

    def _add_pool(
        self, sender: str, name: str, kind: PoolKind, tokens: Sequence[StakedToken], reward: AssetRef, **terms: int
    ) -> PoolId:
        with self._operation(name):
            self._require_owner(sender)
            if _asset_id(reward) != self.reward_asset:
                raise InvalidPoolError(f"reward asset must be {self.reward_asset}, got {_asset_id(reward)}")

            accruals: List[Accrual] = []
            if kind is PoolKind.NORMAL:
                # Re-weighting must not apply retroactively.
                accruals = self._update_pools(kinds=(PoolKind.NORMAL,))

            pool = Pool(
                pool_id=self.registry.next_pool_id,
                kind=kind,
                staked_assets=tuple(_asset_id(t) for t in tokens),
                reward_asset=self.reward_asset,
                last_reward_block=max(self._block(), self.config.start_block),
                **terms,
            )
            for token in tokens:
                self.custody.register(token)
            pid = self.registry.add(pool)

            for accrual in accruals:
                self._execute_accrual(accrual)
        logger.info("added %s pool %d staking %s", kind.value, pid, ", ".join(pool.staked_assets))
        return pid

    def add_normal_pool(self, sender: str, staked_token: StakedToken, reward_token: AssetRef, weight: int) -> PoolId:
        return self._add_pool(
            sender, "add_normal_pool", PoolKind.NORMAL, [staked_token], reward_token, weight=weight
        )

    def add_burn_pool(
        self,
        sender: str,
        staked_token: StakedToken,
        reward_token: AssetRef,
        interval_blocks: int,
        reward_per_interval: int,
        burn_per_interval: int,
    ) -> PoolId:
        return self._add_pool(
            sender,
            "add_burn_pool",
            PoolKind.BURN,
            [staked_token],
            reward_token,
            interval_blocks=interval_blocks,
            reward_per_interval=reward_per_interval,
            burn_per_interval=burn_per_interval,
        )

    def add_multi_burn_pool(
        self,
        sender: str,
        staked_tokens: Sequence[StakedToken],
        reward_token: AssetRef,
        interval_blocks: int,
        reward_per_interval: int,
        burn_per_interval: int,
    ) -> PoolId:
        return self._add_pool(
            sender,
            "add_multi_burn_pool",
            PoolKind.MULTI_BURN,
            list(staked_tokens),
            reward_token,
            interval_blocks=interval_blocks,
            reward_per_interval=reward_per_interval,
            burn_per_interval=burn_per_interval,
        )

    # -- Position operations --------------------------------------------------

    def _position_op(
        self,
        name: str,
        sender: str,
        pool_id: PoolId,
        kind: PoolKind,
        transition: Transition,
        *,
        accrue_first: bool = True,
    ) -> Settlement:
        with self._operation(name):
            pool = self.registry.get(pool_id, kind)
            accrual = self._accrue(pool, self._block()) if accrue_first else Accrual(pool=pool)
            result = transition(accrual.pool, self.registry.position(pool_id, sender))

            violations = check_transition(pool, result.pool)
            if violations:
                raise LedgerInvariantError(violations)

            self.registry.put(result.pool)
            self.registry.set_position(pool_id, sender, result.position)

            assets = result.pool.staked_assets
            if result.principal_in:
                self.custody.pull(assets, sender, result.principal_in)
            self._execute_accrual(accrual)
            if result.reward:
                self._pay_reward(sender, result.reward)
            if result.principal_out:
                self.custody.push(assets, sender, result.principal_out)
            if result.fee_withheld:
                self.custody.push(assets, self.config.treasury, result.fee_withheld)
        return result

    def deposit_normal_pool(self, sender: str, pool_id: PoolId, amount: int) -> int:
        """Stake `amount` less the deposit fee; returns the reward paid out on the way."""
        fee_bps = self.config.deposit_fee_bps
        return self._position_op(
            "deposit_normal_pool",
            sender,
            pool_id,
            PoolKind.NORMAL,
            lambda p, pos: deposit(p, pos, amount, fee_bps),
        ).reward

    def withdraw_normal_pool(self, sender: str, pool_id: PoolId, amount: int) -> int:
        """Unstake `amount`; returns the reward paid out on the way."""
        return self._position_op(
            "withdraw_normal_pool", sender, pool_id, PoolKind.NORMAL, lambda p, pos: withdraw(p, pos, amount)
        ).reward

    def collect_normal_pool(self, sender: str, pool_id: PoolId) -> int:
        return self._position_op("collect_normal_pool", sender, pool_id, PoolKind.NORMAL, settle).reward

    def emergency_withdraw_normal_pool(self, sender: str, pool_id: PoolId) -> int:
        """Exit without settlement; returns the principal released after the fee."""
        fee_bps = self.config.emergency_fee_bps
        result = self._position_op(
            "emergency_withdraw_normal_pool",
            sender,
            pool_id,
            PoolKind.NORMAL,
            lambda p, pos: emergency_withdraw(p, pos, fee_bps),
            accrue_first=False,
        )
        logger.info("emergency withdraw by %s from pool %d (fee %d)", sender, pool_id, result.fee_withheld)
        return result.principal_out

    def deposit_burn_pool(self, sender: str, pool_id: PoolId, amount: int) -> int:
        return self._position_op(
            "deposit_burn_pool", sender, pool_id, PoolKind.BURN, lambda p, pos: deposit(p, pos, amount)
        ).reward

    def collect_burn_pool(self, sender: str, pool_id: PoolId) -> int:
        return self._position_op("collect_burn_pool", sender, pool_id, PoolKind.BURN, settle).reward

    def deposit_multi_burn_pool(self, sender: str, pool_id: PoolId, amount: int) -> int:
        """Stake `amount` of every underlying token of the pool."""
        return self._position_op(
            "deposit_multi_burn_pool", sender, pool_id, PoolKind.MULTI_BURN, lambda p, pos: deposit(p, pos, amount)
        ).reward

    def collect_multi_burn_pool(self, sender: str, pool_id: PoolId) -> int:
        return self._position_op("collect_multi_burn_pool", sender, pool_id, PoolKind.MULTI_BURN, settle).reward

    # -- Views ----------------------------------------------------------------

    def pool_length(self) -> int:
        return len(self.registry)

    def pool_info(self, pool_id: PoolId) -> Pool:
        """Stored pool record (as of its last settlement)."""
        return self.registry.get(pool_id)

    def user_info(self, pool_id: PoolId, user: str) -> UserPosition:
        return self.registry.position(pool_id, user)

    def total_weight(self) -> int:
        return self.registry.total_weight()

    def _current_pool(self, pool_id: PoolId) -> Pool:
        pool = self.registry.get(pool_id)
        return accrue(pool, self._block(), self._accrual_params()).pool

    def pending_reward(self, pool_id: PoolId, user: str) -> int:
        """Reward `user` would collect at the current block."""
        return pending_reward(self._current_pool(pool_id), self.registry.position(pool_id, user))

    def staked_balance(self, pool_id: PoolId, user: str) -> int:
        """Principal backing `user`'s position at the current block (after due burns)."""
        return principal_of(self._current_pool(pool_id), self.registry.position(pool_id, user))

    def check_invariants(self) -> list[str]:
        return check_all(self.registry.pools(), self.registry.positions())
