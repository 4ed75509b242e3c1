"""
In-memory host ledger: block clock, token balances and atomic transactions.

`LocalChain.transact()` mines one block, then runs the call; if it raises,
every participant (balance book, token allowances, ledgers) is restored to
its pre-call state before the exception propagates.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, TypeVar

from ..config import LedgerConfig
from ..state.balances import BalanceTable
from .ledger import StakingLedger
from .tokens import MemoryRewardToken, MemoryToken

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalChain:
    """
    Block clock plus the shared balance book.

    Participants are any objects with `snapshot()` / `restore(snap)`.
    """

    def __init__(self, block_number: int = 0) -> None:
        if not isinstance(block_number, int) or isinstance(block_number, bool) or block_number < 0:
            raise ValueError(f"block_number must be a non-negative int, got {block_number!r}")
        self.book = BalanceTable()
        self.block_number = block_number
        self._participants: List[Any] = [self.book]

    # -- Clock ----------------------------------------------------------------

    def clock(self) -> int:
        return self.block_number

    def mine(self, blocks: int = 1) -> int:
        if not isinstance(blocks, int) or isinstance(blocks, bool) or blocks < 0:
            raise ValueError(f"blocks must be a non-negative int, got {blocks!r}")
        self.block_number += blocks
        return self.block_number

    def advance_to(self, block: int) -> int:
        """Mine empty blocks until the chain head is `block`."""
        if block < self.block_number:
            raise ValueError(f"cannot rewind from block {self.block_number} to {block}")
        self.block_number = block
        return self.block_number

    # -- Deployment -----------------------------------------------------------

    def attach(self, participant: Any) -> None:
        if participant not in self._participants:
            self._participants.append(participant)

    def create_token(self, asset_id: str) -> MemoryToken:
        token = MemoryToken(self.book, asset_id)
        self.attach(token)
        return token

    def create_reward_token(self, asset_id: str, *, minter: str, burner: str | None = None) -> MemoryRewardToken:
        token = MemoryRewardToken(self.book, asset_id, minter=minter, burner=burner or minter)
        self.attach(token)
        return token

    def deploy_ledger(self, config: LedgerConfig, *, address: str, reward_token: MemoryRewardToken) -> StakingLedger:
        """Deploy a ledger at `address` holding `reward_token`'s mint capability as `address`."""
        ledger = StakingLedger(
            config,
            address=address,
            reward_token=reward_token,
            reward_minter=reward_token.capability(address),
            clock=self.clock,
        )
        self.attach(ledger)
        logger.info("deployed staking ledger at %s (block %d)", address, self.block_number)
        return ledger

    # -- Transactions ---------------------------------------------------------

    def transact(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run `fn` in a fresh block; all-or-nothing."""
        self.mine()
        snaps = [(p, p.snapshot()) for p in self._participants]
        try:
            return fn(*args, **kwargs)
        except Exception:
            for participant, snap in snaps:
                participant.restore(snap)
            raise
