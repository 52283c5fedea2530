"""
Exception hierarchy for the governance ledger.

Every rejected contract call raises a ContractError subclass carrying a flat
ErrorCode, so callers can branch on the code without parsing messages.
Storage and configuration failures have their own branches and are never
reported as contract error codes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Type


class ErrorCode(Enum):
    """Flat enumeration of contract rejection reasons."""

    NON_EXISTENT_DAO = "NonExistentDao"
    INSUFFICIENT_PERMISSION = "InsufficientPermission"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    PROPOSAL_NON_EXISTENT = "ProposalNonExistent"
    VOTE_ALREADY_MADE = "VoteAlreadyMade"
    VOTE_NOT_YET_MADE = "VoteNotYetMade"
    VOTING_CLOSED = "VotingClosed"
    VALUE_ALREADY_SUBMITTED = "ValueAlreadySubmitted"
    INVALID_REVEAL_BLOCK = "InvalidRevealBlock"
    VALUE_NOT_SUBMITTED = "ValueNotSubmitted"
    INVALID_REVEAL = "InvalidReveal"
    VALUE_ALREADY_REVEALED = "ValueAlreadyRevealed"
    BALANCE_OVERFLOW = "BalanceOverflow"


class DaoLedgerError(Exception):
    """Base exception for all ledger errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if recoverable is not None:
            self.recoverable = recoverable


# ==================== Contract Errors ====================


class ContractError(DaoLedgerError):
    """Raised when a contract call is rejected.

    A rejected call commits no writes and emits no notifications.
    """

    code: ErrorCode

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or self.code.value, details=details)


class NonExistentDaoError(ContractError):
    """Raised when the referenced DAO (or, on vote, proposal) does not exist."""
    code = ErrorCode.NON_EXISTENT_DAO


class InsufficientPermissionError(ContractError):
    """Raised when a non-owner calls an owner-only operation."""
    code = ErrorCode.INSUFFICIENT_PERMISSION


class InsufficientBalanceError(ContractError):
    """Raised when a balance cannot cover a deduction or the vote cost."""
    code = ErrorCode.INSUFFICIENT_BALANCE


class ProposalNonExistentError(ContractError):
    """Reserved. Missing proposals are reported as NonExistentDao."""
    code = ErrorCode.PROPOSAL_NON_EXISTENT


class VoteAlreadyMadeError(ContractError):
    """Raised when an account votes a second time on the same proposal."""
    code = ErrorCode.VOTE_ALREADY_MADE


class VoteNotYetMadeError(ContractError):
    """Reserved for vote withdrawal, which this ledger does not offer."""
    code = ErrorCode.VOTE_NOT_YET_MADE


class VotingClosedError(ContractError):
    """Raised when voting after a proposal's destroy_at block."""
    code = ErrorCode.VOTING_CLOSED


class ValueAlreadySubmittedError(ContractError):
    """Raised when an account submits a second commitment."""
    code = ErrorCode.VALUE_ALREADY_SUBMITTED


class InvalidRevealBlockError(ContractError):
    """Raised when revealing before the reveal block height."""
    code = ErrorCode.INVALID_REVEAL_BLOCK


class ValueNotSubmittedError(ContractError):
    """Raised when revealing without a stored commitment."""
    code = ErrorCode.VALUE_NOT_SUBMITTED


class InvalidRevealError(ContractError):
    """Raised when a revealed value does not hash to the stored commitment."""
    code = ErrorCode.INVALID_REVEAL


class ValueAlreadyRevealedError(ContractError):
    """Raised when an account reveals a second time."""
    code = ErrorCode.VALUE_ALREADY_REVEALED


class BalanceOverflowError(ContractError):
    """Raised when a credit would push a balance past the 128-bit range."""
    code = ErrorCode.BALANCE_OVERFLOW


# ==================== Storage Errors ====================


class StorageError(DaoLedgerError):
    """Raised when state storage operations fail."""
    pass


class CorruptedStateError(StorageError):
    """Raised when a persisted state snapshot cannot be decoded."""
    pass


class StateError(StorageError):
    """Raised when the store is used inconsistently.

    Examples: writing through a closed transaction, deploying a contract over
    a store that already belongs to another owner.
    """
    pass


# ==================== Configuration Errors ====================


class ConfigurationError(DaoLedgerError):
    """Raised when environment configuration is missing or invalid."""
    pass


# ==================== Utility Functions ====================


_ERRORS_BY_CODE: Dict[ErrorCode, Type[ContractError]] = {
    cls.code: cls
    for cls in (
        NonExistentDaoError,
        InsufficientPermissionError,
        InsufficientBalanceError,
        ProposalNonExistentError,
        VoteAlreadyMadeError,
        VoteNotYetMadeError,
        VotingClosedError,
        ValueAlreadySubmittedError,
        InvalidRevealBlockError,
        ValueNotSubmittedError,
        InvalidRevealError,
        ValueAlreadyRevealedError,
        BalanceOverflowError,
    )
}


def error_for_code(code: ErrorCode) -> Type[ContractError]:
    """Return the ContractError subclass raised for an error code."""
    return _ERRORS_BY_CODE[code]


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, DaoLedgerError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, ContractError):
        context["error_code"] = exc.code.value

    return context
