"""
Quadratic Voting Engine

Implements:
  - Operator-only voter registration (INITIAL_BALANCE - fee)
  - Proposal creation and fee-paid start with a fixed voting period
  - Token reservation, and lossy unreservation (half is burned)
  - Single vote: the whole reserved pool R counts as isqrt(R) AYE weight
  - Batch vote: per-entry amounts taken straight from the balance,
    all-or-nothing
  - Lazy winner resolution when a vote hits a closed proposal

Every operation validates completely before its first mutation, so a
failed call leaves balances, pools and tallies untouched.
"""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

from ..logger import get_logger, set_log_level
from ..constants import INITIAL_BALANCE, VOTING_PERIOD
from ..exceptions import (
    AlreadyVotedError,
    InsufficientFeeError,
    InvalidVoteError,
    NotEnoughBalanceError,
    ProposalClosedError,
    ProposalNotActiveError,
)
from ..ledger.balances import BalanceLedger, InMemoryBalanceLedger
from ..ledger.clock import Clock, ManualClock
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
from .proposals import Proposal, ProposalStore, Vote
from .registry import Voter, VoterRegistry, require_positive_amount
from .reservations import Commitment, ReservationLedger
from .tally import TallyResolver, TallyResult, quadratic_weight

logger = get_logger(__name__)

BatchEntry = Tuple[int, int, Union[Vote, int, str]]


def _parse_direction(direction) -> Vote:
    try:
        return Vote.parse(direction)
    except ValueError as e:
        raise InvalidVoteError(str(e)) from None


# ══════════════════════════════════════════════════════════════════════
#  SUPPLY ACCOUNTING
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SupplySummary:
    """
    Where every issued token currently is.

    issued - fees - burned - consumed == balances + reserved
    """
    issued: int
    fees: int
    burned: int
    consumed: int
    balances: int
    reserved: int

    @property
    def balanced(self) -> bool:
        return (
            self.issued - self.fees - self.burned - self.consumed
            == self.balances + self.reserved
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issued": self.issued,
            "fees": self.fees,
            "burned": self.burned,
            "consumed": self.consumed,
            "balances": self.balances,
            "reserved": self.reserved,
            "balanced": self.balanced,
        }


# ══════════════════════════════════════════════════════════════════════
#  VOTING ENGINE
# ══════════════════════════════════════════════════════════════════════

class VotingEngine:
    """
    Quadratic voting ledger.

    Responsibilities:
        - Expose the operation surface called by the host dispatcher
        - Validate callers against the VoterRegistry
        - Keep the registry, proposal store and reservation ledger consistent
        - Emit one event per successful operation
    """

    def __init__(
        self,
        operator: Hashable,
        clock: Optional[Clock] = None,
        balances: Optional[BalanceLedger] = None,
        initial_balance: int = INITIAL_BALANCE,
        voting_period: int = VOTING_PERIOD,
    ):
        """
        Args:
            operator:        Root identity allowed to register voters
            clock:           Host block-height clock (ManualClock if omitted)
            balances:        Host balance ledger (in-memory if omitted)
            initial_balance: Tokens allocated per voter before the fee
            voting_period:   Blocks a started proposal stays open
        """
        self.clock = clock or ManualClock()
        self.balances = balances or InMemoryBalanceLedger()
        self.registry = VoterRegistry(operator, self.balances, initial_balance)
        self.proposals = ProposalStore(voting_period)
        self.reservations = ReservationLedger(self.registry)
        self.tally = TallyResolver()
        self.events = EventLog()
        self._start_fees = 0

    @classmethod
    def from_config(
        cls,
        config,
        clock: Optional[Clock] = None,
        balances: Optional[BalanceLedger] = None,
    ) -> "VotingEngine":
        """Build an engine from a validated LedgerConfig."""
        config.validate()
        set_log_level(config.logging.level)
        return cls(
            operator=config.operator,
            clock=clock,
            balances=balances,
            initial_balance=config.initial_balance,
            voting_period=config.voting_period,
        )

    @property
    def height(self) -> int:
        return self.clock.current_height()

    @property
    def operator(self) -> Hashable:
        return self.registry.operator

    @property
    def voting_period(self) -> int:
        return self.proposals.voting_period

    # ── Registration ──────────────────────────────────────────────────

    def register_voter(self, operator: Hashable, voter_id: Hashable, fee: int) -> VoterRegistered:
        height = self.height
        voter = self.registry.register(operator, voter_id, fee, height)
        return self.events.emit(
            VoterRegistered(voter_id=voter_id, initial_balance=voter.balance, height=height)
        )

    # ── Proposals ─────────────────────────────────────────────────────

    def create_proposal(self, voter_id: Hashable, content_hash: bytes) -> ProposalCreated:
        self.registry.require(voter_id)
        height = self.height
        proposal = self.proposals.create(voter_id, content_hash, height)
        return self.events.emit(
            ProposalCreated(
                proposal_id=proposal.id,
                content_hash=proposal.content_hash,
                creator=voter_id,
                height=height,
            )
        )

    def start_proposal(self, voter_id: Hashable, proposal_id: int, fee: int) -> ProposalStarted:
        self.registry.require(voter_id)
        self.proposals.get(proposal_id)
        if isinstance(fee, bool) or not isinstance(fee, int) or fee <= 0:
            raise InsufficientFeeError(f"Start fee must be positive, got {fee!r}")
        self.proposals.ensure_startable(proposal_id)
        self.registry.ensure_can_debit(voter_id, fee)

        height = self.height
        self.registry.debit(voter_id, fee)
        self._start_fees += fee
        proposal = self.proposals.start(proposal_id, voter_id, fee, height)
        return self.events.emit(
            ProposalStarted(
                proposal_id=proposal_id,
                end_height=proposal.end_height,
                fee=fee,
                height=height,
            )
        )

    # ── Reservations ──────────────────────────────────────────────────

    def reserve_tokens(self, voter_id: Hashable, amount: int) -> TokensReserved:
        reserved = self.reservations.reserve(voter_id, amount)
        return self.events.emit(
            TokensReserved(voter_id=voter_id, amount=amount, reserved=reserved, height=self.height)
        )

    def unreserve_tokens(self, voter_id: Hashable, amount: int) -> TokensUnreserved:
        receipt = self.reservations.unreserve(voter_id, amount)
        return self.events.emit(
            TokensUnreserved(
                voter_id=voter_id,
                amount=receipt.amount,
                credited=receipt.credited,
                burned=receipt.burned,
                updated_balance=receipt.updated_balance,
                height=self.height,
            )
        )

    # ── Voting ────────────────────────────────────────────────────────

    def vote(
        self,
        voter_id: Hashable,
        proposal_id: int,
        direction: Union[Vote, int, str] = Vote.AYE,
    ) -> Union[ProposalVoted, VotingEnded]:
        """
        Spend the voter's whole reserved pool on *proposal_id*.

        If the proposal's window has already elapsed nothing is spent:
        the winner among closed proposals is resolved and returned as a
        VotingEnded event instead.
        """
        self.registry.require(voter_id)
        proposal = self.proposals.get(proposal_id)
        if not proposal.is_started:
            raise ProposalNotActiveError(f"Proposal #{proposal_id} has not been started")
        vote = _parse_direction(direction)

        height = self.height
        if proposal.is_closed(height):
            logger.info(
                f"Vote on closed proposal #{proposal_id} at height {height} "
                f"(end_height={proposal.end_height}), resolving winner"
            )
            return self._end_voting(height)

        reserved = self.reservations.require_reserved(voter_id)
        self.reservations.ensure_not_committed(voter_id, proposal_id)
        weight = quadratic_weight(reserved)
        if vote.is_tallied and not self.proposals.can_add_aye_weight(proposal_id, weight):
            raise NotEnoughBalanceError(f"Aye weight overflow on proposal #{proposal_id}")

        self.reservations.consume(voter_id, proposal_id, vote, weight)
        if vote.is_tallied:
            self.proposals.add_aye_weight(proposal_id, voter_id, weight)

        logger.info(
            f"Vote: {vote.name} on proposal #{proposal_id} amount={reserved} weight={weight}"
        )
        return self.events.emit(
            ProposalVoted(proposal_id=proposal_id, direction=vote, weight=weight, height=height)
        )

    def vote_multiple_proposals(
        self,
        voter_id: Hashable,
        entries: Sequence[BatchEntry],
    ) -> ProposalsVoted:
        """
        Vote on several proposals at once, each entry paying its own amount
        from the balance. Either every entry applies or none does.
        """
        self.registry.require(voter_id)
        height = self.height
        plan = self._validate_batch(voter_id, entries, height)

        for proposal_id, amount, vote, weight in plan:
            self.reservations.commit(voter_id, proposal_id, amount, vote, weight)
            if vote.is_tallied:
                self.proposals.add_aye_weight(proposal_id, voter_id, weight)

        proposal_ids = tuple(pid for pid, _, _, _ in plan)
        logger.info(
            f"Batch vote on {len(plan)} proposals "
            f"{', '.join(f'#{pid}' for pid in proposal_ids)} "
            f"amount={sum(a for _, a, _, _ in plan)}"
        )
        return self.events.emit(ProposalsVoted(proposal_ids=proposal_ids, height=height))

    vote_multiple = vote_multiple_proposals

    def _validate_batch(
        self,
        voter_id: Hashable,
        entries: Iterable[BatchEntry],
        height: int,
    ) -> List[Tuple[int, int, Vote, int]]:
        plan: List[Tuple[int, int, Vote, int]] = []
        for entry in entries:
            try:
                proposal_id, amount, direction = entry
            except (TypeError, ValueError):
                raise InvalidVoteError(
                    f"Batch entry must be (proposal_id, amount, direction), got {entry!r}"
                ) from None
            proposal = self.proposals.get(proposal_id)
            if not proposal.is_started:
                raise ProposalNotActiveError(f"Proposal #{proposal_id} has not been started")
            if proposal.is_closed(height):
                raise ProposalClosedError(
                    f"Proposal #{proposal_id} closed at height {proposal.end_height}"
                )
            require_positive_amount(amount, "Vote amount")
            vote = _parse_direction(direction)
            plan.append((proposal_id, amount, vote, quadratic_weight(amount)))

        if not plan:
            raise InvalidVoteError("Batch vote needs at least one entry")

        self.registry.ensure_can_debit(voter_id, sum(amount for _, amount, _, _ in plan))

        seen = set()
        for proposal_id, _, vote, weight in plan:
            if proposal_id in seen:
                raise AlreadyVotedError(f"Proposal #{proposal_id} appears twice in the batch")
            self.reservations.ensure_not_committed(voter_id, proposal_id)
            seen.add(proposal_id)
            if vote.is_tallied and not self.proposals.can_add_aye_weight(proposal_id, weight):
                raise NotEnoughBalanceError(f"Aye weight overflow on proposal #{proposal_id}")
        return plan

    # ── Tally ─────────────────────────────────────────────────────────

    def winner(self) -> TallyResult:
        """Winner among proposals closed at the current height."""
        return self.tally.winner(self.proposals.all(), self.height)

    def _end_voting(self, height: int) -> VotingEnded:
        result = self.tally.winner(self.proposals.all(), height)
        return self.events.emit(
            VotingEnded(winner=result.winner, aye_weight=result.aye_weight, height=height)
        )

    # ── Queries ───────────────────────────────────────────────────────

    def get_voter(self, voter_id: Hashable) -> Voter:
        return self.registry.get(voter_id)

    def balance_of(self, voter_id: Hashable) -> int:
        return self.registry.balance_of(voter_id)

    def reserved_of(self, voter_id: Hashable) -> int:
        return self.reservations.reserved_of(voter_id)

    def get_proposal(self, proposal_id: int) -> Proposal:
        return self.proposals.get(proposal_id)

    def aye_weight(self, proposal_id: int) -> int:
        return self.proposals.get(proposal_id).aye_weight

    def is_open(self, proposal_id: int) -> bool:
        return self.proposals.is_open(proposal_id, self.height)

    def commitment(self, voter_id: Hashable, proposal_id: int) -> Commitment:
        return self.reservations.commitment(voter_id, proposal_id)

    def supply_summary(self) -> SupplySummary:
        return SupplySummary(
            issued=self.registry.total_allocated,
            fees=self.registry.registration_fees + self._start_fees,
            burned=self.reservations.total_burned,
            consumed=self.reservations.total_consumed,
            balances=self.registry.total_balance(),
            reserved=self.reservations.total_reserved,
        )

    def to_dict(self) -> Dict[str, Any]:
        height = self.height
        return {
            "height": height,
            "registry": self.registry.to_dict(),
            "proposals": self.proposals.to_dict(height),
            "reservations": self.reservations.to_dict(),
            "supply": self.supply_summary().to_dict(),
            "events": len(self.events),
        }

    def __repr__(self) -> str:
        return (
            f"<VotingEngine voters={self.registry.count} "
            f"proposals={self.proposals.count} height={self.height}>"
        )
