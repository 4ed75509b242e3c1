"""
State management for the staking ledger
"""

from .balances import BalanceTable
from .registry import PoolRegistry, RegistrySnapshot
from .snapshot import compute_state_root, state_from_dict, state_to_dict

__all__ = [
    "BalanceTable",
    "PoolRegistry",
    "RegistrySnapshot",
    "compute_state_root",
    "state_from_dict",
    "state_to_dict",
]
