"""
Ledger Events

One frozen record per successful operation. The ledger only defines their
shape and keeps them in order; transport and storage belong to the host,
which subscribes to the EventLog. Subscriber failures never reach the
caller of the operation.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Tuple

from ..logger import get_logger
from .proposals import Vote

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VoterRegistered:
    voter_id: Hashable
    initial_balance: int
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VoterRegistered",
            "voterId": str(self.voter_id),
            "initialBalance": self.initial_balance,
            "height": self.height,
        }


@dataclass(frozen=True)
class ProposalCreated:
    proposal_id: int
    content_hash: bytes
    creator: Hashable
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalCreated",
            "proposalId": self.proposal_id,
            "contentHash": self.content_hash.hex(),
            "creator": str(self.creator),
            "height": self.height,
        }


@dataclass(frozen=True)
class ProposalStarted:
    proposal_id: int
    end_height: int
    fee: int
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalStarted",
            "proposalId": self.proposal_id,
            "endHeight": self.end_height,
            "fee": self.fee,
            "height": self.height,
        }


@dataclass(frozen=True)
class TokensReserved:
    voter_id: Hashable
    amount: int
    reserved: int
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "TokensReserved",
            "voterId": str(self.voter_id),
            "amount": self.amount,
            "reserved": self.reserved,
            "height": self.height,
        }


@dataclass(frozen=True)
class ProposalVoted:
    """The voter is deliberately not part of the public record."""
    proposal_id: int
    direction: Vote
    weight: int
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalVoted",
            "proposalId": self.proposal_id,
            "direction": self.direction.name,
            "weight": self.weight,
            "height": self.height,
        }


@dataclass(frozen=True)
class ProposalsVoted:
    proposal_ids: Tuple[int, ...]
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalsVoted",
            "proposalIds": list(self.proposal_ids),
            "height": self.height,
        }


@dataclass(frozen=True)
class TokensUnreserved:
    voter_id: Hashable
    amount: int
    credited: int
    burned: int
    updated_balance: int
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "TokensUnreserved",
            "voterId": str(self.voter_id),
            "amount": self.amount,
            "credited": self.credited,
            "burned": self.burned,
            "updatedBalance": self.updated_balance,
            "height": self.height,
        }


@dataclass(frozen=True)
class VotingEnded:
    winner: int
    aye_weight: int
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VotingEnded",
            "winner": self.winner,
            "ayeWeight": self.aye_weight,
            "height": self.height,
        }


# ══════════════════════════════════════════════════════════════════════
#  EVENT LOG
# ══════════════════════════════════════════════════════════════════════

class EventLog:
    """Ordered, append-only event record with host subscribers."""

    def __init__(self):
        self._events: List[Any] = []
        self._subscribers: List[Callable[[Any], None]] = []

    def subscribe(self, callback: Callable[[Any], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Any], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit(self, event: Any) -> Any:
        """
        Record *event* and hand it to every subscriber.

        The operation emitting it has already been applied, so a failing
        subscriber is logged and skipped; the event is still returned.
        """
        self._events.append(event)
        logger.debug(f"[{type(event).__name__}] {event.to_dict()}")
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Subscriber error for {type(event).__name__}: {e}", exc_info=True)
        return event

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    @property
    def last(self) -> Any:
        return self._events[-1] if self._events else None

    def of_type(self, event_type: type) -> List[Any]:
        return [e for e in self._events if isinstance(e, event_type)]

    def __len__(self) -> int:
        return len(self._events)
