"""
Tests for the exception hierarchy and error-code mapping.
"""

import pytest

from daoledger.core.exceptions import (
    BalanceOverflowError,
    ConfigurationError,
    ContractError,
    CorruptedStateError,
    DaoLedgerError,
    ErrorCode,
    InsufficientBalanceError,
    NonExistentDaoError,
    StateError,
    StorageError,
    ValueAlreadyRevealedError,
    error_for_code,
    get_error_context,
)


class TestErrorCodes:
    """Tests for ErrorCode and error_for_code."""

    def test_every_code_has_an_exception(self):
        for code in ErrorCode:
            cls = error_for_code(code)
            assert issubclass(cls, ContractError)
            assert cls.code is code

    @pytest.mark.parametrize("code,value", [
        (ErrorCode.NON_EXISTENT_DAO, "NonExistentDao"),
        (ErrorCode.INSUFFICIENT_PERMISSION, "InsufficientPermission"),
        (ErrorCode.INSUFFICIENT_BALANCE, "InsufficientBalance"),
        (ErrorCode.PROPOSAL_NON_EXISTENT, "ProposalNonExistent"),
        (ErrorCode.VOTE_ALREADY_MADE, "VoteAlreadyMade"),
        (ErrorCode.VOTE_NOT_YET_MADE, "VoteNotYetMade"),
        (ErrorCode.VOTING_CLOSED, "VotingClosed"),
        (ErrorCode.VALUE_ALREADY_SUBMITTED, "ValueAlreadySubmitted"),
        (ErrorCode.INVALID_REVEAL_BLOCK, "InvalidRevealBlock"),
        (ErrorCode.VALUE_NOT_SUBMITTED, "ValueNotSubmitted"),
        (ErrorCode.INVALID_REVEAL, "InvalidReveal"),
        (ErrorCode.VALUE_ALREADY_REVEALED, "ValueAlreadyRevealed"),
        (ErrorCode.BALANCE_OVERFLOW, "BalanceOverflow"),
    ])
    def test_code_values(self, code, value):
        assert code.value == value

    def test_error_for_code_lookup(self):
        assert error_for_code(ErrorCode.INSUFFICIENT_BALANCE) is InsufficientBalanceError
        assert error_for_code(ErrorCode.VALUE_ALREADY_REVEALED) is ValueAlreadyRevealedError


class TestHierarchy:
    """Tests for exception base classes and attributes."""

    def test_contract_errors_are_ledger_errors(self):
        assert issubclass(ContractError, DaoLedgerError)
        assert issubclass(BalanceOverflowError, ContractError)

    def test_storage_branch(self):
        assert issubclass(CorruptedStateError, StorageError)
        assert issubclass(StateError, StorageError)
        assert not issubclass(StorageError, ContractError)

    def test_configuration_error(self):
        assert issubclass(ConfigurationError, DaoLedgerError)
        assert not issubclass(ConfigurationError, ContractError)

    def test_default_message_is_code(self):
        exc = NonExistentDaoError()
        assert str(exc) == "NonExistentDao"
        assert exc.details == {}

    def test_message_and_details(self):
        exc = InsufficientBalanceError("too poor", details={"balance": 1})
        assert exc.message == "too poor"
        assert exc.details == {"balance": 1}
        assert exc.recoverable is False

    def test_recoverable_override(self):
        assert StorageError("disk", recoverable=True).recoverable is True
        assert StorageError("disk").recoverable is False


class TestGetErrorContext:
    """Tests for get_error_context."""

    def test_contract_error_context(self):
        exc = InsufficientBalanceError("too poor", details={"balance": 1})
        context = get_error_context(exc)

        assert context == {
            "error_type": "InsufficientBalanceError",
            "error_message": "too poor",
            "recoverable": False,
            "details": {"balance": 1},
            "error_code": "InsufficientBalance",
        }

    def test_plain_exception_context(self):
        context = get_error_context(RuntimeError("boom"))
        assert context == {"error_type": "RuntimeError", "error_message": "boom"}

    def test_details_omitted_when_empty(self):
        context = get_error_context(StateError("closed"))
        assert "details" not in context
        assert "error_code" not in context
