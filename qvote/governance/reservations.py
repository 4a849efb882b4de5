"""
Reservation Ledger

Two things live here:

  - the reserved pool: tokens a voter has taken out of its balance but not
    yet bound to any proposal (reserve / unreserve / vote)
  - commitments: what a voter has bound to a given proposal, in which
    direction and for what quadratic weight (single vote and batch vote);
    a voter commits to a given proposal at most once

Unreserving is lossy: only amount // 2 goes back to the balance, the rest
is burned.
"""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Tuple

from ..logger import get_logger
from ..constants import BALANCE_MAX, UNRESERVE_REFUND_DIVISOR
from ..exceptions import AlreadyVotedError, NotEnoughBalanceError, NotEnoughReservedTokensError
from .proposals import Vote
from .registry import VoterRegistry, require_positive_amount

logger = get_logger(__name__)


@dataclass
class Commitment:
    """Tokens a voter has bound to one proposal."""
    voter_id: Hashable
    proposal_id: int
    amount: int = 0
    weight: int = 0
    direction: Vote = Vote.AYE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voter": str(self.voter_id),
            "proposalId": self.proposal_id,
            "amount": self.amount,
            "weight": self.weight,
            "direction": self.direction.name,
        }


@dataclass(frozen=True)
class UnreserveReceipt:
    amount: int
    credited: int
    burned: int
    updated_balance: int
    reserved: int


class ReservationLedger:
    """Owns the reserved pools and the per-proposal commitments."""

    def __init__(self, registry: VoterRegistry):
        self._registry = registry
        self._pools: Dict[Hashable, int] = {}
        self._commitments: Dict[Tuple[Hashable, int], Commitment] = {}
        self._burned = 0
        self._consumed = 0

    # ── Queries ───────────────────────────────────────────────────────

    def reserved_of(self, voter_id: Hashable) -> int:
        return self._pools.get(voter_id, 0)

    def commitment(self, voter_id: Hashable, proposal_id: int) -> Commitment:
        """Commitment of *voter_id* on *proposal_id* (empty if none)."""
        return self._commitments.get(
            (voter_id, proposal_id),
            Commitment(voter_id=voter_id, proposal_id=proposal_id),
        )

    def commitments_of(self, voter_id: Hashable) -> List[Commitment]:
        return [c for (v, _), c in sorted(self._commitments.items(), key=lambda kv: kv[0][1])
                if v == voter_id]

    def has_committed(self, voter_id: Hashable, proposal_id: int) -> bool:
        return (voter_id, proposal_id) in self._commitments

    def ensure_not_committed(self, voter_id: Hashable, proposal_id: int) -> None:
        if self.has_committed(voter_id, proposal_id):
            raise AlreadyVotedError(f"{voter_id} already voted on proposal #{proposal_id}")

    @property
    def total_reserved(self) -> int:
        return sum(self._pools.values())

    @property
    def total_burned(self) -> int:
        """Tokens destroyed by the unreserve penalty."""
        return self._burned

    @property
    def total_consumed(self) -> int:
        """Tokens converted into vote weight (both voting paths)."""
        return self._consumed

    # ── Reserve / unreserve ───────────────────────────────────────────

    def reserve(self, voter_id: Hashable, amount: int) -> int:
        """Move *amount* from the balance into the pool; returns the new pool."""
        self._registry.require(voter_id)
        require_positive_amount(amount, "Reserve amount")
        self._registry.ensure_can_debit(voter_id, amount)
        pool = self.reserved_of(voter_id)
        if pool + amount > BALANCE_MAX:
            raise NotEnoughBalanceError(f"Reserved pool of {voter_id} would overflow")

        self._registry.debit(voter_id, amount)
        self._pools[voter_id] = pool + amount
        logger.debug(f"Reserve: {voter_id} amount={amount} reserved={pool + amount}")
        return pool + amount

    def unreserve(self, voter_id: Hashable, amount: int) -> UnreserveReceipt:
        """Release *amount* from the pool; half (rounded down) is credited back."""
        self._registry.require(voter_id)
        require_positive_amount(amount, "Unreserve amount")
        pool = self.reserved_of(voter_id)
        if amount > pool:
            raise NotEnoughReservedTokensError(
                f"{voter_id} reserved {pool} < unreserve amount {amount}"
            )
        credited = amount // UNRESERVE_REFUND_DIVISOR
        burned = amount - credited
        balance = self._registry.balance_of(voter_id)
        if balance + credited > BALANCE_MAX:
            raise NotEnoughBalanceError(f"Refund to {voter_id} would overflow its balance")

        self._set_pool(voter_id, pool - amount)
        updated = self._registry.credit(voter_id, credited) if credited else balance
        self._burned += burned
        logger.warning(
            f"Unreserve: {voter_id} amount={amount} credited={credited} burned={burned}"
        )
        return UnreserveReceipt(
            amount=amount,
            credited=credited,
            burned=burned,
            updated_balance=updated,
            reserved=pool - amount,
        )

    # ── Binding to proposals ──────────────────────────────────────────

    def require_reserved(self, voter_id: Hashable) -> int:
        pool = self.reserved_of(voter_id)
        if pool <= 0:
            raise NotEnoughReservedTokensError(f"{voter_id} has no reserved tokens")
        return pool

    def consume(
        self,
        voter_id: Hashable,
        proposal_id: int,
        direction: Vote,
        weight: int,
    ) -> Commitment:
        """Bind the whole pool to *proposal_id*; partial consumption is not supported."""
        amount = self.require_reserved(voter_id)
        self.ensure_not_committed(voter_id, proposal_id)
        self._set_pool(voter_id, 0)
        return self._record(voter_id, proposal_id, amount, weight, direction)

    def commit(
        self,
        voter_id: Hashable,
        proposal_id: int,
        amount: int,
        direction: Vote,
        weight: int,
    ) -> Commitment:
        """Bind *amount* straight from the balance (batch path, pool untouched)."""
        require_positive_amount(amount, "Vote amount")
        self.ensure_not_committed(voter_id, proposal_id)
        self._registry.debit(voter_id, amount)
        return self._record(voter_id, proposal_id, amount, weight, direction)

    # ── Internals ─────────────────────────────────────────────────────

    def _set_pool(self, voter_id: Hashable, amount: int) -> None:
        if amount:
            self._pools[voter_id] = amount
        else:
            self._pools.pop(voter_id, None)

    def _record(
        self,
        voter_id: Hashable,
        proposal_id: int,
        amount: int,
        weight: int,
        direction: Vote,
    ) -> Commitment:
        c = Commitment(
            voter_id=voter_id,
            proposal_id=proposal_id,
            amount=amount,
            weight=weight,
            direction=direction,
        )
        self._commitments[(voter_id, proposal_id)] = c
        self._consumed += amount
        return c

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalReserved": self.total_reserved,
            "totalBurned": self._burned,
            "totalConsumed": self._consumed,
            "commitments": len(self._commitments),
        }

    def __repr__(self) -> str:
        return f"<ReservationLedger reserved={self.total_reserved} burned={self._burned}>"
