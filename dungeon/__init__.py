"""
Dungeon staking ledger: Normal, Burn and MultiBurn yield pools.

- `dungeon.core`: pure integer kernels (accrual, fee split, positions, invariants)
- `dungeon.state`: pool registry, balance book and state snapshots
- `dungeon.integration`: the imperative ledger shell and in-memory collaborators
"""

__version__ = "0.1.0"
