"""Exception types for the staking ledger.

Every failure aborts the whole operation; the shell restores pre-call state
before re-raising, so callers only ever observe committed or untouched state.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every rejection raised by the ledger."""


class AccessControlError(LedgerError):
    """Raised when a caller invokes an operation reserved for another role."""


class InvalidPoolError(LedgerError):
    """Raised for an unknown pool id or an operation on the wrong pool kind."""


class InsufficientBalanceError(LedgerError):
    """Raised when a withdrawal exceeds the caller's staked amount."""


class InvalidAmountError(LedgerError, ValueError):
    """Raised for non-positive amounts, zero-share deposits and bad pool terms."""


class LedgerArithmeticError(LedgerError, ArithmeticError):
    """Raised when a checked operation leaves the uint256 domain."""


class TransferFailure(LedgerError):
    """Raised when a token collaborator call fails or returns False."""


class ReentrancyError(LedgerError):
    """Raised when a ledger operation is re-entered before the first completes."""


class LedgerInvariantError(LedgerError):
    """Raised when a computed post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
