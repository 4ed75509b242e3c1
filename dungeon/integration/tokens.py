"""
Token collaborator interfaces and in-memory implementations.

The ledger only talks to tokens through these interfaces:
- `StakedToken`: standard transfer / transfer_from / balance_of,
- `RewardToken`: a `StakedToken` that also reports total supply,
- `RewardMinter`: the mint/burn capability the ledger holds for the reward
  asset (injected at construction; role gating lives in the token).

Calls take the acting account explicitly (there is no implicit msg.sender).
Transfers return False on insufficient balance/allowance, mirroring tokens
that report failure instead of reverting; the ledger treats both as fatal.
"""

from __future__ import annotations

from typing import Dict, Tuple

from ..state.balances import BalanceTable

# Sink for burned principal.
BURN_ADDRESS = "0x000000000000000000000000000000000000dEaD"


class StakedToken:
    """Interface for a token that can be escrowed by the ledger."""

    asset_id: str

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        raise NotImplementedError

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> bool:
        raise NotImplementedError

    def balance_of(self, holder: str) -> int:
        raise NotImplementedError


class RewardToken(StakedToken):
    """Interface for the reward asset."""

    def total_supply(self) -> int:
        raise NotImplementedError


class RewardMinter:
    """Capability to create and destroy the reward asset."""

    def mint(self, to: str, amount: int) -> None:
        raise NotImplementedError

    def burn(self, holder: str, amount: int) -> None:
        raise NotImplementedError


class MemoryToken(RewardToken):
    """A plain token whose balances live in a shared `BalanceTable`."""

    def __init__(self, book: BalanceTable, asset_id: str) -> None:
        if not isinstance(asset_id, str) or not asset_id:
            raise ValueError("asset_id must be a non-empty string")
        self.book = book
        self.asset_id = asset_id
        self._allowances: Dict[Tuple[str, str], int] = {}

    def balance_of(self, holder: str) -> int:
        return self.book.get(holder, self.asset_id)

    def total_supply(self) -> int:
        return self.book.total_supply(self.asset_id)

    def allowance(self, holder: str, spender: str) -> int:
        return self._allowances.get((holder, spender), 0)

    def approve(self, holder: str, spender: str, amount: int) -> bool:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"allowance must be a non-negative int, got {amount!r}")
        self._allowances[(holder, spender)] = amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        self.book.move(sender, recipient, self.asset_id, amount)
        return True

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> bool:
        allowed = self.allowance(holder, spender)
        if amount < 0 or allowed < amount or self.balance_of(holder) < amount:
            return False
        self._allowances[(holder, spender)] = allowed - amount
        self.book.move(holder, recipient, self.asset_id, amount)
        return True

    def faucet(self, holder: str, amount: int) -> None:
        """Create `amount` out of thin air (test setup / scenario funding)."""
        self.book.credit(holder, self.asset_id, amount)

    def snapshot(self) -> Dict[Tuple[str, str], int]:
        return dict(self._allowances)

    def restore(self, snap: Dict[Tuple[str, str], int]) -> None:
        self._allowances = dict(snap)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.asset_id!r})"


class MemoryRewardToken(MemoryToken):
    """Reward token with a single authorized minter and a single burner."""

    def __init__(self, book: BalanceTable, asset_id: str, *, minter: str, burner: str) -> None:
        super().__init__(book, asset_id)
        self.minter = minter
        self.burner = burner

    def mint(self, caller: str, to: str, amount: int) -> None:
        if caller != self.minter:
            raise PermissionError(f"{caller} is not the minter of {self.asset_id}")
        self.book.credit(to, self.asset_id, amount)

    def burn(self, caller: str, holder: str, amount: int) -> None:
        if caller != self.burner:
            raise PermissionError(f"{caller} is not the burner of {self.asset_id}")
        self.book.debit(holder, self.asset_id, amount)

    def capability(self, holder: str) -> RewardMinter:
        """Mint/burn capability acting as `holder`."""
        return _BoundMinter(self, holder)


class _BoundMinter(RewardMinter):
    def __init__(self, token: MemoryRewardToken, holder: str) -> None:
        self._token = token
        self._holder = holder

    def mint(self, to: str, amount: int) -> None:
        self._token.mint(self._holder, to, amount)

    def burn(self, holder: str, amount: int) -> None:
        self._token.burn(self._holder, holder, amount)
