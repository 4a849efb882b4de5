"""
QVote Quadratic Governance

Provides:
  - Vote / ProposalState / Proposal / ProposalStore   (proposals.py)
  - Voter / VoterRegistry                             (registry.py)
  - Commitment / ReservationLedger                    (reservations.py)
  - TallyResolver / TallyResult / quadratic_weight    (tally.py)
  - EventLog and event records                        (events.py)
  - VotingEngine / SupplySummary                      (voting.py)
"""

from .proposals import (
    Proposal,
    ProposalState,
    ProposalStore,
    Vote,
    hash_proposal_text,
)
from .registry import (
    Voter,
    VoterRegistry,
)
from .reservations import (
    Commitment,
    ReservationLedger,
    UnreserveReceipt,
)
from .tally import (
    TallyResolver,
    TallyResult,
    quadratic_weight,
)
from .events import (
    EventLog,
    ProposalCreated,
    ProposalStarted,
    ProposalVoted,
    ProposalsVoted,
    TokensReserved,
    TokensUnreserved,
    VoterRegistered,
    VotingEnded,
)
from .voting import (
    SupplySummary,
    VotingEngine,
)

__all__ = [
    # Proposals
    "Proposal",
    "ProposalState",
    "ProposalStore",
    "Vote",
    "hash_proposal_text",
    # Voters
    "Voter",
    "VoterRegistry",
    # Reservations
    "Commitment",
    "ReservationLedger",
    "UnreserveReceipt",
    # Tally
    "TallyResolver",
    "TallyResult",
    "quadratic_weight",
    # Events
    "EventLog",
    "ProposalCreated",
    "ProposalStarted",
    "ProposalVoted",
    "ProposalsVoted",
    "TokensReserved",
    "TokensUnreserved",
    "VoterRegistered",
    "VotingEnded",
    # Engine
    "SupplySummary",
    "VotingEngine",
]
