"""Pure integer arithmetic for the staking ledger.

Every helper operates on plain Python ints and is explicit about rounding:
divisions use `//` (floor). Results are range-checked against the uint256
domain so that amounts stay representable by the token collaborators.
"""

from __future__ import annotations

from .errors import LedgerArithmeticError

# Fixed-point scale of `acc_reward_per_share`.
PRECISION: int = 1_000_000_000_000  # 1e12
BPS_DENOM: int = 10_000
MAX_UINT256: int = (1 << 256) - 1


def require_uint(value: int, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > MAX_UINT256:
        raise LedgerArithmeticError(f"{name} out of uint256 range: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    out = a + b
    if out > MAX_UINT256:
        raise LedgerArithmeticError("addition overflow")
    return out


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise LedgerArithmeticError("subtraction underflow")
    return a - b


def checked_mul(a: int, b: int) -> int:
    out = a * b
    if out > MAX_UINT256:
        raise LedgerArithmeticError("multiplication overflow")
    return out


def mul_div(a: int, b: int, denom: int) -> int:
    """``a * b // denom`` with the intermediate product overflow-checked."""
    if denom <= 0:
        raise LedgerArithmeticError("division by non-positive denominator")
    return checked_mul(a, b) // denom


def bps_of(amount: int, bps: int) -> int:
    """Floor of ``amount * bps / 10000``."""
    return mul_div(amount, bps, BPS_DENOM)


# -- Fixed-point accumulator -------------------------------------------------

def acc_increment(net_reward: int, total_shares: int) -> int:
    """Accumulator delta for distributing `net_reward` over `total_shares`.

    Zero stake yields a zero delta: nothing is parked in the accumulator.
    """
    if total_shares <= 0:
        return 0
    return mul_div(net_reward, PRECISION, total_shares)


def bump(acc_reward_per_share: int, net_reward: int, total_shares: int) -> int:
    return checked_add(acc_reward_per_share, acc_increment(net_reward, total_shares))


def accrued(amount: int, acc_reward_per_share: int, reward_debt: int) -> int:
    """Reward earned by `amount` shares since the `reward_debt` checkpoint."""
    if reward_debt > acc_reward_per_share:
        raise LedgerArithmeticError("reward_debt ahead of accumulator")
    return mul_div(amount, acc_reward_per_share - reward_debt, PRECISION)
