"""
Governance Proposals

Defines vote directions, proposal lifecycle states, the Proposal record and
the ProposalStore that owns every proposal ever created.

Lifecycle:

    CREATED --start(fee)--> STARTED --(height > end_height)--> closed

"closed" is never stored: it is derived from the clock height, so no sweep
is needed to close proposals.
"""

import hashlib
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Hashable, List, Optional

from ..logger import get_logger
from ..constants import (
    BALANCE_MAX,
    CONTENT_HASH_SIZE,
    FIRST_PROPOSAL_INDEX,
    VOTE_ABSTAIN,
    VOTE_AYE,
    VOTE_NAY,
)
from ..exceptions import (
    InvalidProposalError,
    NotEnoughBalanceError,
    ProposalAlreadyStartedError,
    ProposalNotFoundError,
)

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class Vote(IntEnum):
    """Vote direction. Only AYE is tallied; NAY and ABSTAIN are recorded."""
    AYE = VOTE_AYE
    NAY = VOTE_NAY
    ABSTAIN = VOTE_ABSTAIN

    @classmethod
    def parse(cls, value) -> "Vote":
        """Accept a Vote, its integer value or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Invalid vote direction: {value!r}") from None
        return cls(value)

    @property
    def is_tallied(self) -> bool:
        return self is Vote.AYE


class ProposalState(IntEnum):
    """Stored lifecycle stage."""
    CREATED = 0     # Registered, not yet accepting votes
    STARTED = 1     # Fee paid, end height fixed


# ══════════════════════════════════════════════════════════════════════
#  CONTENT HASH
# ══════════════════════════════════════════════════════════════════════

def hash_proposal_text(text: str) -> bytes:
    """Deterministic 32-byte digest identifying a proposal's text."""
    return hashlib.blake2b(text.encode("utf-8"), digest_size=CONTENT_HASH_SIZE).digest()


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    A community issue open for a bounded voting window.

    Fields:
        id:            Sequential index (first proposal is 1)
        content_hash:  blake2b digest of the proposal text
        creator:       Voter id of the proposer
        state:         CREATED or STARTED
        created_at:    Height at creation
        end_height:    Last height at which votes are accepted (set on start)
        started_at:    Height at start
        start_fee:     Fee paid by the starter
        aye_weight:    Sum of quadratic AYE weights
    """
    id: int
    content_hash: bytes
    creator: Hashable
    created_at: int = 0
    state: ProposalState = ProposalState.CREATED
    end_height: Optional[int] = None
    started_at: Optional[int] = None
    started_by: Optional[Hashable] = None
    start_fee: int = 0
    aye_weight: int = 0
    _aye_by_voter: Dict[Hashable, int] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        if not isinstance(self.content_hash, (bytes, bytearray)):
            raise InvalidProposalError("Proposal content hash must be bytes")
        if len(self.content_hash) != CONTENT_HASH_SIZE:
            raise InvalidProposalError(
                f"Proposal content hash must be {CONTENT_HASH_SIZE} bytes, "
                f"got {len(self.content_hash)}"
            )
        self.content_hash = bytes(self.content_hash)

    # ── Predicates ────────────────────────────────────────────────────

    @property
    def is_started(self) -> bool:
        return self.state == ProposalState.STARTED

    def is_open(self, current_height: int) -> bool:
        """Accepting votes: started and the end height not yet passed."""
        return self.is_started and current_height <= self.end_height

    def is_closed(self, current_height: int) -> bool:
        """Started and past its end height. CREATED proposals are never closed."""
        return self.is_started and current_height > self.end_height

    def status_at(self, current_height: int) -> str:
        if self.is_closed(current_height):
            return "CLOSED"
        return self.state.name

    def aye_weight_of(self, voter_id: Hashable) -> int:
        return self._aye_by_voter.get(voter_id, 0)

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self, current_height: Optional[int] = None) -> Dict[str, Any]:
        status = self.state.name if current_height is None else self.status_at(current_height)
        return {
            "id": self.id,
            "contentHash": self.content_hash.hex(),
            "creator": str(self.creator),
            "status": status,
            "createdAt": self.created_at,
            "startedAt": self.started_at,
            "endHeight": self.end_height,
            "startFee": self.start_fee,
            "ayeWeight": self.aye_weight,
            "ayeVoters": len(self._aye_by_voter),
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id} state={self.state.name} "
            f"end={self.end_height} aye={self.aye_weight}>"
        )


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL STORE
# ══════════════════════════════════════════════════════════════════════

class ProposalStore:
    """
    Owns every proposal record. Proposals are never deleted: closed ones
    stay queryable for tallying.

    Caller validation (registered voter, fee payment) is done by the
    VotingEngine before these methods run; the store only enforces its own
    invariants.
    """

    def __init__(self, voting_period: int):
        if voting_period <= 0:
            raise ValueError("voting_period must be positive")
        self.voting_period = voting_period
        self._proposals: Dict[int, Proposal] = {}
        self._next_index = FIRST_PROPOSAL_INDEX

    # ── Lookup ────────────────────────────────────────────────────────

    def exists(self, proposal_id: int) -> bool:
        return proposal_id in self._proposals

    def get(self, proposal_id: int) -> Proposal:
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise ProposalNotFoundError(f"Proposal #{proposal_id} not found")
        return proposal

    def all(self) -> List[Proposal]:
        return [self._proposals[pid] for pid in sorted(self._proposals)]

    def closed(self, current_height: int) -> List[Proposal]:
        return [p for p in self.all() if p.is_closed(current_height)]

    def is_open(self, proposal_id: int, current_height: int) -> bool:
        return self.get(proposal_id).is_open(current_height)

    @property
    def count(self) -> int:
        return len(self._proposals)

    # ── Mutations ─────────────────────────────────────────────────────

    def create(self, creator: Hashable, content_hash: bytes, current_height: int) -> Proposal:
        """Allocate the next sequential index for a new CREATED proposal."""
        proposal = Proposal(
            id=self._next_index,
            content_hash=content_hash,
            creator=creator,
            created_at=current_height,
        )
        self._proposals[proposal.id] = proposal
        self._next_index += 1
        logger.info(f"Proposal #{proposal.id} created by {creator} [{proposal.content_hash.hex()[:16]}]")
        return proposal

    def ensure_startable(self, proposal_id: int) -> Proposal:
        proposal = self.get(proposal_id)
        if proposal.state != ProposalState.CREATED:
            raise ProposalAlreadyStartedError(
                f"Proposal #{proposal_id} already started "
                f"(end_height={proposal.end_height})"
            )
        return proposal

    def start(
        self,
        proposal_id: int,
        starter: Hashable,
        fee: int,
        current_height: int,
    ) -> Proposal:
        """CREATED → STARTED, fixing end_height once."""
        proposal = self.ensure_startable(proposal_id)
        proposal.state = ProposalState.STARTED
        proposal.started_at = current_height
        proposal.started_by = starter
        proposal.start_fee = fee
        proposal.end_height = current_height + self.voting_period
        logger.info(
            f"Proposal #{proposal_id}: CREATED → STARTED by {starter} "
            f"fee={fee} end_height={proposal.end_height}"
        )
        return proposal

    def can_add_aye_weight(self, proposal_id: int, weight: int) -> bool:
        return self.get(proposal_id).aye_weight + weight <= BALANCE_MAX

    def add_aye_weight(self, proposal_id: int, voter_id: Hashable, weight: int) -> int:
        """Add a quadratic weight to the proposal's AYE tally; returns the new total."""
        if weight < 0:
            raise ValueError("Vote weight cannot be negative")
        proposal = self.get(proposal_id)
        if proposal.aye_weight + weight > BALANCE_MAX:
            raise NotEnoughBalanceError(f"Aye weight overflow on proposal #{proposal_id}")
        proposal.aye_weight += weight
        proposal._aye_by_voter[voter_id] = proposal._aye_by_voter.get(voter_id, 0) + weight
        return proposal.aye_weight

    def to_dict(self, current_height: Optional[int] = None) -> Dict[str, Any]:
        return {
            "proposalCount": len(self._proposals),
            "votingPeriod": self.voting_period,
            "proposals": {p.id: p.to_dict(current_height) for p in self.all()},
        }

    def __repr__(self) -> str:
        return f"<ProposalStore proposals={len(self._proposals)}>"
