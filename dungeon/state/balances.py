"""
In-memory asset book backing the bundled token collaborators.

Implements BalanceTable[Holder, AssetId] -> Amount plus per-asset supply.
"""

from __future__ import annotations

from typing import Dict, Tuple

from ..core.math import MAX_UINT256

# Type aliases
Holder = str
AssetId = str
Amount = int


class BalanceTable:
    """
    Balance table mapping (holder, asset) -> amount, with per-asset total supply.

    Note: balances live in a plain dict. Callers that hash or serialize must
    sort keys explicitly (see `dungeon/state/snapshot.py`).
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Holder, AssetId], Amount] = {}
        self._supply: Dict[AssetId, Amount] = {}

    def get(self, holder: Holder, asset: AssetId) -> Amount:
        """Get balance for (holder, asset). Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def total_supply(self, asset: AssetId) -> Amount:
        return self._supply.get(asset, 0)

    def _set(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Keep the table sparse
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def credit(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        """Create `amount` of `asset` for `holder` (increases supply)."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        supply = self.total_supply(asset) + amount
        if supply > MAX_UINT256:
            raise OverflowError(f"total supply of {asset} overflows uint256")
        self._supply[asset] = supply
        self._set(holder, asset, self.get(holder, asset) + amount)

    def debit(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        """Destroy `amount` of `asset` held by `holder` (decreases supply)."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        current = self.get(holder, asset)
        if amount > current:
            raise ValueError(f"Insufficient balance: {current} < {amount}")
        self._set(holder, asset, current - amount)
        self._supply[asset] = self.total_supply(asset) - amount

    def move(self, sender: Holder, recipient: Holder, asset: AssetId, amount: Amount) -> None:
        """Move `amount` between holders; supply is unchanged."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        current = self.get(sender, asset)
        if amount > current:
            raise ValueError(f"Insufficient balance: {current} < {amount}")
        self._set(sender, asset, current - amount)
        self._set(recipient, asset, self.get(recipient, asset) + amount)

    def get_all_balances(self) -> Dict[Tuple[Holder, AssetId], Amount]:
        return dict(self._balances)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Holder, Amount]:
        result = {}
        for (holder, a), amount in self._balances.items():
            if a == asset:
                result[holder] = amount
        return result

    def snapshot(self) -> tuple[dict, dict]:
        return dict(self._balances), dict(self._supply)

    def restore(self, snap: tuple[dict, dict]) -> None:
        balances, supply = snap
        self._balances = dict(balances)
        self._supply = dict(supply)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries, {len(self._supply)} assets)"
