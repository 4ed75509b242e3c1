"""
Core staking kernels (pure, integer-only).
"""

from .accrual import ACCRUE_DISPATCH, AccrualParams, accrue, normal_reward_per_block
from .errors import (
    AccessControlError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidPoolError,
    LedgerArithmeticError,
    LedgerInvariantError,
    LedgerError,
    ReentrancyError,
    TransferFailure,
)
from .fees import FeePolicy, FeeSplitParams, FeeSplitResult, split_reward
from .invariants import INVARIANT_REGISTRY, check_all, check_transition
from .math import BPS_DENOM, MAX_UINT256, PRECISION
from .positions import deposit, emergency_withdraw, pending_reward, principal_of, settle, withdraw
from .schedule import IntervalOutcome, elapsed_intervals, schedule
from .types import Accrual, Pool, PoolKind, Settlement, UserPosition

__all__ = [
    "ACCRUE_DISPATCH",
    "AccrualParams",
    "accrue",
    "normal_reward_per_block",
    "AccessControlError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "InvalidPoolError",
    "LedgerArithmeticError",
    "LedgerInvariantError",
    "LedgerError",
    "ReentrancyError",
    "TransferFailure",
    "FeePolicy",
    "FeeSplitParams",
    "FeeSplitResult",
    "split_reward",
    "INVARIANT_REGISTRY",
    "check_all",
    "check_transition",
    "BPS_DENOM",
    "MAX_UINT256",
    "PRECISION",
    "deposit",
    "emergency_withdraw",
    "pending_reward",
    "principal_of",
    "settle",
    "withdraw",
    "IntervalOutcome",
    "elapsed_intervals",
    "schedule",
    "Accrual",
    "Pool",
    "PoolKind",
    "Settlement",
    "UserPosition",
]
