"""
Commit-reveal randomness beacon.

One global round: every account may commit once to a secret u64 by
submitting hash(value as 8 big-endian bytes), and reveal it once the chain
reaches reveal_block_height. Commitments and reveals are never cleared.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from daoledger.contracts.ownership import require_owner
from daoledger.core.constants import MAX_REVEAL_VALUE, REVEAL_VALUE_BYTES
from daoledger.core.events import ContractEvent, ValueRevealed
from daoledger.core.exceptions import (
    InvalidRevealBlockError,
    InvalidRevealError,
    ValueAlreadyRevealedError,
    ValueAlreadySubmittedError,
    ValueNotSubmittedError,
)
from daoledger.core.host import Hasher, sha256_digest
from daoledger.core.models import AccountId, BlockNumber, RandomNumberState
from daoledger.core.storage import StoreTransaction

logger = logging.getLogger(__name__)

RANDOM_NUMBER_KEY = "beacon:random_number"


def validate_reveal_value(value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"Reveal value must be an integer, got {type(value).__name__}")
    if not 0 <= value <= MAX_REVEAL_VALUE:
        raise ValueError("Reveal value must fit in an unsigned 64-bit integer.")


def make_commitment(value: int, hasher: Hasher = sha256_digest) -> bytes:
    """Return the commitment a participant submits for a secret value."""
    validate_reveal_value(value)
    return hasher(value.to_bytes(REVEAL_VALUE_BYTES, "big"))


class CommitRevealBeacon:
    """The global commit-reveal round over one call's store transaction."""

    def __init__(
        self,
        state: StoreTransaction,
        emit: Callable[[ContractEvent], None],
        hasher: Hasher = sha256_digest,
    ) -> None:
        self.state = state
        self._emit = emit
        self.hasher = hasher

    def load(self) -> RandomNumberState:
        return self.state.get(RANDOM_NUMBER_KEY) or RandomNumberState()

    def _save(self, round_state: RandomNumberState) -> None:
        self.state.insert(RANDOM_NUMBER_KEY, round_state)

    # ==================== View Functions ====================

    def reveal_block_height(self) -> BlockNumber:
        return self.load().reveal_block_height

    def has_committed(self, account: AccountId) -> bool:
        return account in self.load().masked_values

    def revealed_value(self, account: AccountId) -> Optional[int]:
        return self.load().revealed_values.get(account)

    def random_value(self) -> Optional[int]:
        """
        Combine every revealed value into the shared random value.

        The value is the first 8 bytes, big-endian, of the hash over all
        revealed (account, value) pairs in account order. None until at
        least one value has been revealed.
        """
        revealed = self.load().revealed_values
        if not revealed:
            return None

        transcript = bytearray()
        for account in sorted(revealed):
            encoded_account = account.encode("utf-8")
            transcript += len(encoded_account).to_bytes(4, "big")
            transcript += encoded_account
            transcript += revealed[account].to_bytes(REVEAL_VALUE_BYTES, "big")
        digest = self.hasher(bytes(transcript))
        return int.from_bytes(digest[:REVEAL_VALUE_BYTES], "big")

    # ==================== State-Changing Functions ====================

    def submit_masked_value(self, caller: AccountId, commitment: bytes) -> None:
        """
        Store caller's commitment verbatim.

        Raises:
            ValueAlreadySubmittedError: If caller already committed
        """
        if not isinstance(commitment, (bytes, bytearray)):
            raise TypeError("Commitment must be bytes.")

        round_state = self.load()
        if caller in round_state.masked_values:
            raise ValueAlreadySubmittedError(
                f"{caller} already submitted a masked value",
                details={"account": caller},
            )

        round_state.masked_values[caller] = bytes(commitment)
        self._save(round_state)

        logger.info(
            "Masked value submitted",
            extra={"event": "beacon.commit", "account": caller},
        )

    def reveal_value(self, caller: AccountId, value: int, current_block: BlockNumber) -> None:
        """
        Reveal caller's secret value.

        Raises:
            ValueNotSubmittedError: If caller never committed
            ValueAlreadyRevealedError: If caller already revealed
            InvalidRevealBlockError: If current_block is before reveal_block_height
            InvalidRevealError: If value does not hash to the commitment
        """
        validate_reveal_value(value)

        round_state = self.load()
        masked_value = round_state.masked_values.get(caller)
        if masked_value is None:
            raise ValueNotSubmittedError(
                f"{caller} has not submitted a masked value",
                details={"account": caller},
            )
        if caller in round_state.revealed_values:
            raise ValueAlreadyRevealedError(
                f"{caller} already revealed a value",
                details={"account": caller},
            )
        if current_block < round_state.reveal_block_height:
            raise InvalidRevealBlockError(
                f"Reveals open at block {round_state.reveal_block_height}",
                details={
                    "block": current_block,
                    "reveal_block_height": round_state.reveal_block_height,
                },
            )
        if make_commitment(value, self.hasher) != masked_value:
            raise InvalidRevealError(
                f"Revealed value does not match the commitment of {caller}",
                details={"account": caller},
            )

        round_state.revealed_values[caller] = value
        self._save(round_state)

        self._emit(ValueRevealed(account=caller, value=value))

        logger.info(
            "Value revealed",
            extra={"event": "beacon.reveal", "account": caller, "value": value},
        )

    def set_reveal_block_height(self, caller: AccountId, block_height: BlockNumber) -> None:
        """
        Overwrite the global reveal threshold (contract owner only).

        Raises:
            InsufficientPermissionError: If caller is not the contract owner
        """
        if (
            not isinstance(block_height, int)
            or isinstance(block_height, bool)
            or block_height < 0
        ):
            raise ValueError("Reveal block height must be a non-negative integer.")

        require_owner(self.state, caller)

        round_state = self.load()
        previous = round_state.reveal_block_height
        pending = len(round_state.masked_values) - len(round_state.revealed_values)
        round_state.reveal_block_height = block_height
        self._save(round_state)

        if pending and previous != block_height:
            logger.warning(
                f"Reveal block height moved from {previous} to {block_height} "
                f"with {pending} commitment(s) awaiting reveal",
                extra={
                    "event": "beacon.reveal_height_moved",
                    "previous": previous,
                    "new": block_height,
                    "pending": pending,
                },
            )
        else:
            logger.info(
                f"Reveal block height set to {block_height}",
                extra={"event": "beacon.reveal_height_set", "reveal_block_height": block_height},
            )
