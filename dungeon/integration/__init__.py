"""
Integration layer: the staking ledger shell and its token collaborators
"""

from .chain import LocalChain
from .custody import StakedTokenCustody
from .ledger import StakingLedger
from .tokens import (
    BURN_ADDRESS,
    MemoryRewardToken,
    MemoryToken,
    RewardMinter,
    RewardToken,
    StakedToken,
)

__all__ = [
    "LocalChain",
    "StakedTokenCustody",
    "StakingLedger",
    "BURN_ADDRESS",
    "MemoryRewardToken",
    "MemoryToken",
    "RewardMinter",
    "RewardToken",
    "StakedToken",
]
