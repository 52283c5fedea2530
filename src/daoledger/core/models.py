"""
Stored records of the governance ledger.

Each record serializes to a plain dict (to_dict / from_dict) so a store can
snapshot it to JSON. Balances and counters are stored as bare integers and
need no record type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

AccountId = str
DaoId = int
ProposalId = int
BlockNumber = int
Balance = int


class ProposalStatus(Enum):
    """Derived proposal state; never stored."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass
class DaoInfo:
    """A governance unit with an owner and its own proposal counter."""

    owner: AccountId
    birth_block: BlockNumber
    next_proposal_id: ProposalId
    vote_cost: Balance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "birth_block": self.birth_block,
            "next_proposal_id": self.next_proposal_id,
            "vote_cost": self.vote_cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DaoInfo":
        return cls(
            owner=data["owner"],
            birth_block=int(data["birth_block"]),
            next_proposal_id=int(data["next_proposal_id"]),
            vote_cost=int(data["vote_cost"]),
        )


@dataclass
class ProposalInfo:
    """A block-bounded item within a DAO.

    votes_in_favour and votes_against map each voter to the voting power
    (full balance) they held when the vote was cast.
    """

    info: str
    created_at: BlockNumber
    destroy_at: BlockNumber
    votes_in_favour: Dict[AccountId, Balance] = field(default_factory=dict)
    votes_against: Dict[AccountId, Balance] = field(default_factory=dict)

    def has_voted(self, account: AccountId) -> bool:
        return account in self.votes_in_favour or account in self.votes_against

    def status_at(self, block: BlockNumber) -> ProposalStatus:
        if block > self.destroy_at:
            return ProposalStatus.CLOSED
        return ProposalStatus.OPEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "info": self.info,
            "created_at": self.created_at,
            "destroy_at": self.destroy_at,
            "votes_in_favour": dict(self.votes_in_favour),
            "votes_against": dict(self.votes_against),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposalInfo":
        return cls(
            info=data["info"],
            created_at=int(data["created_at"]),
            destroy_at=int(data["destroy_at"]),
            votes_in_favour={k: int(v) for k, v in data.get("votes_in_favour", {}).items()},
            votes_against={k: int(v) for k, v in data.get("votes_against", {}).items()},
        )


@dataclass
class ProposalTally:
    """Summed voting power per side. A tally only, no verdict."""

    dao_id: DaoId
    proposal_id: ProposalId
    power_in_favour: Balance
    power_against: Balance
    voters_in_favour: int
    voters_against: int


@dataclass
class RandomNumberState:
    """The single global commit-reveal round."""

    masked_values: Dict[AccountId, bytes] = field(default_factory=dict)
    revealed_values: Dict[AccountId, int] = field(default_factory=dict)
    reveal_block_height: BlockNumber = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "masked_values": {k: v.hex() for k, v in self.masked_values.items()},
            "revealed_values": dict(self.revealed_values),
            "reveal_block_height": self.reveal_block_height,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RandomNumberState":
        return cls(
            masked_values={k: bytes.fromhex(v) for k, v in data.get("masked_values", {}).items()},
            revealed_values={k: int(v) for k, v in data.get("revealed_values", {}).items()},
            reveal_block_height=int(data.get("reveal_block_height", 0)),
        )


# Record types a store may persist, keyed by the tag written next to them
RECORD_TYPES = {
    cls.__name__: cls
    for cls in (DaoInfo, ProposalInfo, RandomNumberState)
}
