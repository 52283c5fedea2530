"""Contract owner record and the owner-only guard shared by the components."""

from __future__ import annotations

from daoledger.core.exceptions import InsufficientPermissionError, StateError
from daoledger.core.storage import StoreTransaction

OWNER_KEY = "contract:owner"


def contract_owner(state: StoreTransaction) -> str:
    owner = state.get(OWNER_KEY)
    if owner is None:
        raise StateError("Store has no contract owner; deploy the contract first")
    return owner


def require_owner(state: StoreTransaction, caller: str) -> None:
    if caller != contract_owner(state):
        raise InsufficientPermissionError(
            f"{caller} is not the contract owner",
            details={"caller": caller},
        )
