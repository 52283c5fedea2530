"""
DAOs, proposals and votes.

A proposal is open while the current block is at or before destroy_at and
closed afterwards; the state is derived from the block number at call time
and never stored. Voting power is the voter's full balance at the moment of
voting and is only recorded as the vote's weight. The price of a vote is
the DAO's flat vote_cost, deducted through the Ledger. Balance is not
locked, so the same balance can back votes on any number of proposals.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from daoledger.contracts.ledger import Ledger
from daoledger.core.constants import (
    FIRST_DAO_ID,
    FIRST_PROPOSAL_ID,
    VOTE_COST,
    VOTING_PERIOD_BLOCKS,
)
from daoledger.core.events import ContractEvent, DaoCreated, ProposalCreated, VoteMade
from daoledger.core.exceptions import (
    InsufficientBalanceError,
    NonExistentDaoError,
    VoteAlreadyMadeError,
    VotingClosedError,
)
from daoledger.core.models import (
    AccountId,
    BlockNumber,
    DaoId,
    DaoInfo,
    ProposalId,
    ProposalInfo,
    ProposalStatus,
    ProposalTally,
)
from daoledger.core.storage import StoreTransaction

logger = logging.getLogger(__name__)

NEXT_DAO_ID_KEY = "governance:next_dao_id"


def dao_key(dao_id: DaoId) -> str:
    return f"dao:{dao_id}"


def proposal_key(dao_id: DaoId, proposal_id: ProposalId) -> str:
    return f"proposal:{dao_id}:{proposal_id}"


class Governance:
    """DAO and proposal state machine over one call's store transaction."""

    def __init__(
        self,
        state: StoreTransaction,
        ledger: Ledger,
        emit: Callable[[ContractEvent], None],
    ) -> None:
        self.state = state
        self.ledger = ledger
        self._emit = emit

    # ==================== View Functions ====================

    def next_dao_id(self) -> DaoId:
        return self.state.get(NEXT_DAO_ID_KEY, FIRST_DAO_ID)

    def get_dao(self, dao_id: DaoId) -> Optional[DaoInfo]:
        return self.state.get(dao_key(dao_id))

    def get_proposal(self, dao_id: DaoId, proposal_id: ProposalId) -> Optional[ProposalInfo]:
        return self.state.get(proposal_key(dao_id, proposal_id))

    def proposal_status(
        self, dao_id: DaoId, proposal_id: ProposalId, current_block: BlockNumber
    ) -> ProposalStatus:
        return self._load_proposal(dao_id, proposal_id).status_at(current_block)

    def proposal_tally(self, dao_id: DaoId, proposal_id: ProposalId) -> ProposalTally:
        proposal = self._load_proposal(dao_id, proposal_id)
        return ProposalTally(
            dao_id=dao_id,
            proposal_id=proposal_id,
            power_in_favour=sum(proposal.votes_in_favour.values()),
            power_against=sum(proposal.votes_against.values()),
            voters_in_favour=len(proposal.votes_in_favour),
            voters_against=len(proposal.votes_against),
        )

    # ==================== State-Changing Functions ====================

    def create_dao(self, owner: AccountId, current_block: BlockNumber) -> DaoId:
        """Allocate the next DAO id and store a fresh DaoInfo under it."""
        dao_id = self.next_dao_id()
        self.state.insert(
            dao_key(dao_id),
            DaoInfo(
                owner=owner,
                birth_block=current_block,
                next_proposal_id=FIRST_PROPOSAL_ID,
                vote_cost=VOTE_COST,
            ),
        )
        self.state.insert(NEXT_DAO_ID_KEY, dao_id + 1)

        self._emit(DaoCreated(dao_id=dao_id))

        logger.info(
            f"DAO {dao_id} created for {owner}",
            extra={"event": "governance.dao_created", "dao_id": dao_id, "owner": owner},
        )
        return dao_id

    def create_proposal(
        self,
        caller: AccountId,
        dao_id: DaoId,
        info: str,
        current_block: BlockNumber,
    ) -> ProposalId:
        """
        Open a proposal in dao_id, voting until current_block + VOTING_PERIOD_BLOCKS.

        Raises:
            NonExistentDaoError: If dao_id is unknown
        """
        dao = self.get_dao(dao_id)
        if dao is None:
            raise NonExistentDaoError(f"DAO {dao_id} does not exist", details={"dao_id": dao_id})

        proposal_id = dao.next_proposal_id
        self.state.insert(
            proposal_key(dao_id, proposal_id),
            ProposalInfo(
                info=info,
                created_at=current_block,
                destroy_at=current_block + VOTING_PERIOD_BLOCKS,
            ),
        )

        dao.next_proposal_id = proposal_id + 1
        self.state.insert(dao_key(dao_id), dao)

        self._emit(ProposalCreated(dao_id=dao_id, proposal_id=proposal_id))

        logger.info(
            f"Proposal {dao_id}/{proposal_id} created by {caller}",
            extra={
                "event": "governance.proposal_created",
                "dao_id": dao_id,
                "proposal_id": proposal_id,
                "proposer": caller,
                "destroy_at": current_block + VOTING_PERIOD_BLOCKS,
            },
        )
        return proposal_id

    def vote(
        self,
        caller: AccountId,
        dao_id: DaoId,
        proposal_id: ProposalId,
        in_favor: bool,
        current_block: BlockNumber,
    ) -> None:
        """
        Cast caller's single vote on a proposal.

        The checks run in a fixed order and the first failing one decides the
        error: missing proposal or DAO, balance below vote_cost, voting
        closed, already voted.

        Raises:
            NonExistentDaoError: If the proposal or its DAO is unknown
            InsufficientBalanceError: If caller's balance is below vote_cost
            VotingClosedError: If current_block is past destroy_at
            VoteAlreadyMadeError: If caller already voted on either side
        """
        proposal = self.get_proposal(dao_id, proposal_id)
        if proposal is None:
            # Unknown proposals share the NonExistentDao code
            raise NonExistentDaoError(
                f"Proposal {dao_id}/{proposal_id} does not exist",
                details={"dao_id": dao_id, "proposal_id": proposal_id},
            )
        dao = self.get_dao(dao_id)
        if dao is None:
            raise NonExistentDaoError(f"DAO {dao_id} does not exist", details={"dao_id": dao_id})

        voting_power = self.ledger.get_balance(caller)
        if voting_power < dao.vote_cost:
            raise InsufficientBalanceError(
                f"Voting needs a balance of {dao.vote_cost}, {caller} has {voting_power}",
                details={"account": caller, "balance": voting_power, "vote_cost": dao.vote_cost},
            )
        if current_block > proposal.destroy_at:
            raise VotingClosedError(
                f"Voting on {dao_id}/{proposal_id} closed at block {proposal.destroy_at}",
                details={"destroy_at": proposal.destroy_at, "block": current_block},
            )
        if proposal.has_voted(caller):
            raise VoteAlreadyMadeError(
                f"{caller} already voted on {dao_id}/{proposal_id}",
                details={"account": caller, "dao_id": dao_id, "proposal_id": proposal_id},
            )

        if in_favor:
            proposal.votes_in_favour[caller] = voting_power
        else:
            proposal.votes_against[caller] = voting_power
        self.state.insert(proposal_key(dao_id, proposal_id), proposal)

        self.ledger.decrease_balance(caller, dao.vote_cost)

        self._emit(VoteMade(id=(dao_id, proposal_id), is_in_favor=in_favor))

        logger.info(
            f"Vote cast on {dao_id}/{proposal_id} by {caller}: "
            f"{'FOR' if in_favor else 'AGAINST'} with power {voting_power}",
            extra={
                "event": "governance.vote",
                "dao_id": dao_id,
                "proposal_id": proposal_id,
                "in_favor": in_favor,
                "voting_power": voting_power,
            },
        )

    def _load_proposal(self, dao_id: DaoId, proposal_id: ProposalId) -> ProposalInfo:
        proposal = self.get_proposal(dao_id, proposal_id)
        if proposal is None:
            raise NonExistentDaoError(
                f"Proposal {dao_id}/{proposal_id} does not exist",
                details={"dao_id": dao_id, "proposal_id": proposal_id},
            )
        return proposal
