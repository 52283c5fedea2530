"""
Balance ledger.

Balances are unsigned 128-bit integers kept under one store key per account;
an account with no entry has balance 0. All arithmetic is checked here, so
no caller can drive a balance below zero or past MAX_BALANCE: a debit that
cannot be covered raises InsufficientBalance and a credit that would
overflow raises BalanceOverflow, both before anything is written.
"""

from __future__ import annotations

import logging
from typing import Callable

from daoledger.contracts.ownership import require_owner
from daoledger.core.constants import MAX_BALANCE
from daoledger.core.events import BalanceTransfer, ContractEvent
from daoledger.core.exceptions import BalanceOverflowError, InsufficientBalanceError
from daoledger.core.models import AccountId, Balance
from daoledger.core.storage import StoreTransaction

logger = logging.getLogger(__name__)


def balance_key(account: AccountId) -> str:
    return f"balance:{account}"


def validate_amount(amount: int) -> None:
    """Reject values that are not unsigned 128-bit integers."""
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError("Amount must be non-negative.")
    if amount > MAX_BALANCE:
        raise ValueError("Amount exceeds the 128-bit balance range.")


class Ledger:
    """Account balances over one call's store transaction."""

    def __init__(
        self,
        state: StoreTransaction,
        emit: Callable[[ContractEvent], None],
    ) -> None:
        self.state = state
        self._emit = emit

    # ==================== View Functions ====================

    def get_balance(self, account: AccountId) -> Balance:
        return self.state.get(balance_key(account), 0)

    # ==================== Balance Arithmetic ====================

    def increase_balance(self, account: AccountId, amount: Balance) -> None:
        validate_amount(amount)
        current = self.get_balance(account)
        if current + amount > MAX_BALANCE:
            raise BalanceOverflowError(
                f"Crediting {amount} to {account} exceeds the balance range",
                details={"account": account, "balance": current, "amount": amount},
            )
        self.state.insert(balance_key(account), current + amount)

    def decrease_balance(self, account: AccountId, amount: Balance) -> None:
        validate_amount(amount)
        current = self.get_balance(account)
        if current < amount:
            raise InsufficientBalanceError(
                f"Balance of {account} is {current}, cannot deduct {amount}",
                details={"account": account, "balance": current, "amount": amount},
            )
        self.state.insert(balance_key(account), current - amount)

    # ==================== State-Changing Functions ====================

    def transfer(self, caller: AccountId, target: AccountId, amount: Balance) -> None:
        """
        Move amount from caller to target.

        Args:
            caller: Account sending the balance
            target: Account receiving the balance
            amount: Amount to move

        Raises:
            InsufficientBalanceError: If caller's balance cannot cover amount
            BalanceOverflowError: If target's balance would overflow
        """
        self.decrease_balance(caller, amount)
        self.increase_balance(target, amount)

        self._emit(BalanceTransfer(from_account=caller, to_account=target, amount=amount))

        logger.debug(
            "Balance transfer",
            extra={
                "event": "ledger.transfer",
                "from": caller,
                "to": target,
                "amount": amount,
            },
        )

    def mint(self, caller: AccountId, target: AccountId, amount: Balance) -> None:
        """
        Credit new balance to target (contract owner only).

        Raises:
            InsufficientPermissionError: If caller is not the contract owner
            BalanceOverflowError: If target's balance would overflow
        """
        require_owner(self.state, caller)
        self.increase_balance(target, amount)

        logger.info(
            "Balance minted",
            extra={"event": "ledger.mint", "to": target, "amount": amount},
        )
