"""
Governance ledger contract.

DaoContract is the public surface: every state-changing operation takes the
host's CallContext and runs as one atomic call. The call opens a store
transaction, lets the components read, validate and write through it, then
either commits every write and delivers the queued notifications, or
discards both. Components never call each other outside a call frame and
share nothing but the store.

Usage:
    contract = DaoContract(owner="root")
    contract.mint(CallContext("root", 1), "alice", 10)
    dao_id = contract.create_dao(CallContext("alice", 2), owner="alice")
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from daoledger.contracts.beacon import CommitRevealBeacon, make_commitment
from daoledger.contracts.governance import NEXT_DAO_ID_KEY, Governance
from daoledger.contracts.ledger import Ledger
from daoledger.contracts.ownership import OWNER_KEY
from daoledger.core import metrics
from daoledger.core.config import Config, validate_hash_algorithm
from daoledger.core.constants import FIRST_DAO_ID
from daoledger.core.events import ContractEvent, EventSink, LoggingEventSink
from daoledger.core.exceptions import ContractError, StateError, get_error_context
from daoledger.core.host import CallContext, Hasher, hasher_for
from daoledger.core.models import (
    AccountId,
    Balance,
    BlockNumber,
    DaoId,
    DaoInfo,
    ProposalId,
    ProposalInfo,
    ProposalStatus,
    ProposalTally,
)
from daoledger.core.storage import InMemoryStore, StateStore, StoreTransaction

logger = logging.getLogger(__name__)

HASH_ALGORITHM_KEY = "contract:hash_algorithm"


class _CallFrame:
    """Components wired over one call's transaction and event queue."""

    def __init__(self, state: StoreTransaction, hasher: Hasher) -> None:
        self.state = state
        self.events: List[ContractEvent] = []
        emit: Callable[[ContractEvent], None] = self.events.append
        self.ledger = Ledger(state, emit)
        self.governance = Governance(state, self.ledger, emit)
        self.beacon = CommitRevealBeacon(state, emit, hasher)


def _require_account(account: AccountId, label: str) -> None:
    if not isinstance(account, str) or not account:
        raise ValueError(f"{label} must be a non-empty account id.")


def _require_id(value: int, label: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"{label} must be a non-negative integer.")


class DaoContract:
    """Balances, DAOs with proposals and votes, and the commit-reveal beacon."""

    def __init__(
        self,
        owner: AccountId,
        store: Optional[StateStore] = None,
        event_sink: Optional[EventSink] = None,
        hash_algorithm: Optional[str] = None,
    ) -> None:
        """
        Deploy the contract into store, or attach to a store it already owns.

        Args:
            owner: Contract owner; the only account allowed to mint and to
                move the reveal block height
            store: Backing store (a fresh InMemoryStore by default)
            event_sink: Receives notifications after each commit
            hash_algorithm: hashlib name used for commitments. Recorded in
                the store at deploy (Config.HASH_ALGORITHM by default);
                when attaching, the recorded algorithm is used

        Raises:
            StateError: If store was deployed by a different owner or with
                a different hash algorithm
            ConfigurationError: If hash_algorithm is not usable
        """
        _require_account(owner, "Owner")
        self.store = store if store is not None else InMemoryStore()
        self.event_sink = event_sink if event_sink is not None else LoggingEventSink()

        existing_owner = self.store.get(OWNER_KEY)
        if existing_owner is None:
            algorithm = validate_hash_algorithm(hash_algorithm or Config.HASH_ALGORITHM)
            self.store.apply({
                OWNER_KEY: owner,
                HASH_ALGORITHM_KEY: algorithm,
                NEXT_DAO_ID_KEY: FIRST_DAO_ID,
            })
            logger.info(
                f"Contract deployed with owner {owner}",
                extra={"event": "contract.deployed", "owner": owner, "hash_algorithm": algorithm},
            )
        elif existing_owner != owner:
            raise StateError(
                f"Store already belongs to owner {existing_owner}",
                details={"owner": existing_owner},
            )
        else:
            algorithm = self._recorded_hash_algorithm(hash_algorithm)

        self.owner = owner
        self.hash_algorithm = algorithm
        self.hasher: Hasher = hasher_for(algorithm)

    @classmethod
    def from_store(
        cls,
        store: StateStore,
        event_sink: Optional[EventSink] = None,
        hash_algorithm: Optional[str] = None,
    ) -> "DaoContract":
        """Attach to a store that already holds a deployed contract."""
        owner = store.get(OWNER_KEY)
        if owner is None:
            raise StateError("Store holds no deployed contract")
        return cls(owner, store=store, event_sink=event_sink, hash_algorithm=hash_algorithm)

    def _recorded_hash_algorithm(self, requested: Optional[str]) -> str:
        recorded = self.store.get(HASH_ALGORITHM_KEY)
        if recorded is None:
            raise StateError("Store records no commitment hash algorithm")

        if requested is not None:
            if validate_hash_algorithm(requested) != recorded:
                raise StateError(
                    f"Store commitments use {recorded}, not {requested}",
                    details={"recorded": recorded, "requested": requested},
                )
        elif Config.HASH_ALGORITHM != recorded:
            logger.warning(
                f"Configured hash algorithm {Config.HASH_ALGORITHM} ignored; "
                f"store commitments use {recorded}",
                extra={
                    "event": "contract.hash_algorithm_ignored",
                    "configured": Config.HASH_ALGORITHM,
                    "recorded": recorded,
                },
            )
        return recorded

    # ==================== Call Frames ====================

    @contextmanager
    def _call(self, operation: str, ctx: CallContext) -> Iterator[_CallFrame]:
        if not isinstance(ctx, CallContext):
            raise TypeError("Contract calls need a CallContext from the host.")

        started = time.perf_counter()
        frame = _CallFrame(self.store.begin(), self.hasher)
        try:
            yield frame
            frame.state.commit()
        except ContractError as exc:
            frame.state.rollback()
            metrics.record_call(operation, exc.code.value, time.perf_counter() - started)
            logger.info(
                f"{operation} rejected: {exc.code.value}",
                extra={
                    "event": "contract.rejected",
                    "operation": operation,
                    "caller": ctx.caller,
                    "block": ctx.block_number,
                    **get_error_context(exc),
                },
            )
            raise
        except BaseException:
            frame.state.rollback()
            metrics.record_call(operation, "error", time.perf_counter() - started)
            raise

        metrics.record_call(operation, "ok", time.perf_counter() - started)
        for event in frame.events:
            # Writes are committed by now; sink failures are logged, not raised
            try:
                self.event_sink.emit(event)
            except Exception as exc:
                logger.error(
                    f"Event sink failed to deliver {event.name}",
                    extra={
                        "event": "contract.notification_failed",
                        "operation": operation,
                        "payload": event.to_dict(),
                        **get_error_context(exc),
                    },
                    exc_info=True,
                )
                continue
            metrics.record_event(event.name)

    @contextmanager
    def _view(self) -> Iterator[_CallFrame]:
        frame = _CallFrame(self.store.begin(), self.hasher)
        try:
            yield frame
        finally:
            frame.state.rollback()

    # ==================== Ledger ====================

    def balance(self, account: AccountId) -> Balance:
        """Current balance of account; 0 if it was never credited."""
        with self._view() as frame:
            return frame.ledger.get_balance(account)

    def transfer(self, ctx: CallContext, target: AccountId, amount: Balance) -> None:
        """Move amount from the caller to target; emits BalanceTransfer."""
        _require_account(target, "Target")
        with self._call("transfer", ctx) as frame:
            frame.ledger.transfer(ctx.caller, target, amount)

    def mint(self, ctx: CallContext, target: AccountId, amount: Balance) -> None:
        """Credit amount to target. Owner only."""
        _require_account(target, "Target")
        with self._call("mint", ctx) as frame:
            frame.ledger.mint(ctx.caller, target, amount)

    # ==================== Governance ====================

    def create_dao(self, ctx: CallContext, owner: AccountId) -> DaoId:
        _require_account(owner, "DAO owner")
        with self._call("create_dao", ctx) as frame:
            return frame.governance.create_dao(owner, ctx.block_number)

    def create_proposal(self, ctx: CallContext, dao_id: DaoId, info: str) -> ProposalId:
        _require_id(dao_id, "DAO id")
        if not isinstance(info, str):
            raise TypeError("Proposal info must be text.")
        with self._call("create_proposal", ctx) as frame:
            return frame.governance.create_proposal(ctx.caller, dao_id, info, ctx.block_number)

    def vote(
        self,
        ctx: CallContext,
        dao_id: DaoId,
        proposal_id: ProposalId,
        in_favor: bool,
    ) -> None:
        _require_id(dao_id, "DAO id")
        _require_id(proposal_id, "Proposal id")
        if not isinstance(in_favor, bool):
            raise TypeError("in_favor must be a bool.")
        with self._call("vote", ctx) as frame:
            frame.governance.vote(ctx.caller, dao_id, proposal_id, in_favor, ctx.block_number)

    def next_dao_id(self) -> DaoId:
        with self._view() as frame:
            return frame.governance.next_dao_id()

    def get_dao(self, dao_id: DaoId) -> Optional[DaoInfo]:
        with self._view() as frame:
            return frame.governance.get_dao(dao_id)

    def get_proposal(self, dao_id: DaoId, proposal_id: ProposalId) -> Optional[ProposalInfo]:
        with self._view() as frame:
            return frame.governance.get_proposal(dao_id, proposal_id)

    def proposal_status(
        self, dao_id: DaoId, proposal_id: ProposalId, current_block: BlockNumber
    ) -> ProposalStatus:
        with self._view() as frame:
            return frame.governance.proposal_status(dao_id, proposal_id, current_block)

    def proposal_tally(self, dao_id: DaoId, proposal_id: ProposalId) -> ProposalTally:
        with self._view() as frame:
            return frame.governance.proposal_tally(dao_id, proposal_id)

    # ==================== Commit-Reveal Beacon ====================

    def make_commitment(self, value: int) -> bytes:
        """Commitment for value under this contract's hash primitive."""
        return make_commitment(value, self.hasher)

    def submit_masked_value(self, ctx: CallContext, commitment: bytes) -> None:
        with self._call("submit_masked_value", ctx) as frame:
            frame.beacon.submit_masked_value(ctx.caller, commitment)

    def reveal_value(self, ctx: CallContext, value: int) -> None:
        with self._call("reveal_value", ctx) as frame:
            frame.beacon.reveal_value(ctx.caller, value, ctx.block_number)

    def set_reveal_block_height(self, ctx: CallContext, block_height: BlockNumber) -> None:
        with self._call("set_reveal_block_height", ctx) as frame:
            frame.beacon.set_reveal_block_height(ctx.caller, block_height)

    def reveal_block_height(self) -> BlockNumber:
        with self._view() as frame:
            return frame.beacon.reveal_block_height()

    def has_committed(self, account: AccountId) -> bool:
        with self._view() as frame:
            return frame.beacon.has_committed(account)

    def revealed_value(self, account: AccountId) -> Optional[int]:
        with self._view() as frame:
            return frame.beacon.revealed_value(account)

    def random_value(self) -> Optional[int]:
        with self._view() as frame:
            return frame.beacon.random_value()
