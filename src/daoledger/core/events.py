"""
Notifications emitted by contract calls.

Events are queued while a call runs and handed to the EventSink only after
the call's writes commit, so a rejected call never produces one.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Protocol, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractEvent:
    """Base class for every notification."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["event"] = self.name
        return payload


@dataclass(frozen=True)
class BalanceTransfer(ContractEvent):
    from_account: str
    to_account: str
    amount: int


@dataclass(frozen=True)
class DaoCreated(ContractEvent):
    dao_id: int


@dataclass(frozen=True)
class ProposalCreated(ContractEvent):
    dao_id: int
    proposal_id: int


@dataclass(frozen=True)
class VoteMade(ContractEvent):
    id: Tuple[int, int]
    is_in_favor: bool


@dataclass(frozen=True)
class ValueRevealed(ContractEvent):
    account: str
    value: int


class EventSink(Protocol):
    def emit(self, event: ContractEvent) -> None:
        ...


class LoggingEventSink:
    """Default sink: writes each notification to the log."""

    def emit(self, event: ContractEvent) -> None:
        logger.info(
            f"{event.name} emitted",
            extra={"event": "contract.notification", "payload": event.to_dict()},
        )


E = TypeVar("E", bound=ContractEvent)


class EventCollector:
    """Sink that records notifications in delivery order."""

    def __init__(self) -> None:
        self.events: List[ContractEvent] = []

    def emit(self, event: ContractEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)
