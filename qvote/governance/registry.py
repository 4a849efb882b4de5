"""
Voter Registry

Tracks registered voters. Balances themselves live in the host balance
ledger; the registry is the only component allowed to move them and it
translates ledger failures into NotEnoughBalanceError.
"""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, List

from ..logger import get_logger
from ..constants import BALANCE_MAX, INITIAL_BALANCE
from ..exceptions import (
    AlreadyRegisteredError,
    BalanceLedgerError,
    FeeExceedsInitialBalanceError,
    InsufficientFeeError,
    InvalidAmountError,
    NotEnoughBalanceError,
    NotRegisteredVoterError,
    UnauthorizedOperatorError,
)
from ..ledger.balances import BalanceLedger

logger = get_logger(__name__)


def require_positive_amount(amount: int, what: str = "Amount") -> int:
    """Reject non-integers (including bool) and values <= 0."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"{what} must be an integer, got {type(amount).__name__}")
    if amount <= 0:
        raise InvalidAmountError(f"{what} must be positive, got {amount}")
    return amount


@dataclass(frozen=True)
class VoterRecord:
    """Stored registration data. Never deleted, never unregistered."""
    id: Hashable
    fee: int
    registered_at: int


@dataclass(frozen=True)
class Voter:
    """Snapshot of a voter as seen by callers."""
    id: Hashable
    balance: int
    registered: bool = True
    registered_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "balance": self.balance,
            "registered": self.registered,
            "registeredAt": self.registered_at,
        }


class VoterRegistry:
    """
    Registered voters and their balances.

    Args:
        operator:         The only identity allowed to register voters
        balances:         Host balance ledger
        initial_balance:  Allocation granted at registration (before fee)
    """

    def __init__(
        self,
        operator: Hashable,
        balances: BalanceLedger,
        initial_balance: int = INITIAL_BALANCE,
    ):
        if initial_balance <= 0:
            raise ValueError("initial_balance must be positive")
        self.operator = operator
        self.initial_balance = initial_balance
        self._balances = balances
        self._voters: Dict[Hashable, VoterRecord] = {}
        self._fees_collected = 0

    # ── Registration ──────────────────────────────────────────────────

    def check_registration(self, operator: Hashable, voter_id: Hashable, fee: int) -> None:
        """Run every registration check without touching state."""
        if operator != self.operator:
            raise UnauthorizedOperatorError(f"{operator} is not the ledger operator")
        if isinstance(fee, bool) or not isinstance(fee, int) or fee <= 0:
            raise InsufficientFeeError(f"Registration fee must be positive, got {fee!r}")
        if voter_id in self._voters:
            raise AlreadyRegisteredError(f"Voter {voter_id} is already registered")
        if fee > self.initial_balance:
            raise FeeExceedsInitialBalanceError(
                f"Fee {fee} exceeds initial balance {self.initial_balance}"
            )
        if self.initial_balance - fee > BALANCE_MAX:
            raise NotEnoughBalanceError(f"Initial allocation for {voter_id} overflows its balance")

    def register(
        self,
        operator: Hashable,
        voter_id: Hashable,
        fee: int,
        current_height: int = 0,
    ) -> Voter:
        """Register *voter_id* with exactly INITIAL_BALANCE - fee tokens."""
        self.check_registration(operator, voter_id, fee)

        allocation = self.initial_balance - fee
        previous = self._balances.balance_of(voter_id)
        if previous:
            logger.warning(f"Voter {voter_id} had balance={previous} on the host ledger, resetting")
        self._balances.set_balance(voter_id, allocation)
        self._voters[voter_id] = VoterRecord(id=voter_id, fee=fee, registered_at=current_height)
        self._fees_collected += fee
        logger.info(f"Voter {voter_id} registered fee={fee} balance={allocation}")
        return self.get(voter_id)

    # ── Lookup ────────────────────────────────────────────────────────

    def is_registered(self, voter_id: Hashable) -> bool:
        return voter_id in self._voters

    def require(self, voter_id: Hashable) -> VoterRecord:
        record = self._voters.get(voter_id)
        if record is None:
            raise NotRegisteredVoterError(f"{voter_id} is not a registered voter")
        return record

    def get(self, voter_id: Hashable) -> Voter:
        record = self.require(voter_id)
        return Voter(
            id=voter_id,
            balance=self._balances.balance_of(voter_id),
            registered_at=record.registered_at,
        )

    def balance_of(self, voter_id: Hashable) -> int:
        self.require(voter_id)
        return self._balances.balance_of(voter_id)

    def voter_ids(self) -> List[Hashable]:
        return list(self._voters)

    @property
    def count(self) -> int:
        return len(self._voters)

    @property
    def total_allocated(self) -> int:
        """Tokens promised at registration, before fees."""
        return self.initial_balance * len(self._voters)

    @property
    def registration_fees(self) -> int:
        return self._fees_collected

    def total_balance(self) -> int:
        return sum(self._balances.balance_of(v) for v in self._voters)

    # ── Balance primitives ────────────────────────────────────────────

    def debit(self, voter_id: Hashable, amount: int) -> int:
        self.require(voter_id)
        try:
            return self._balances.debit(voter_id, amount)
        except BalanceLedgerError as e:
            raise NotEnoughBalanceError(str(e)) from e

    def credit(self, voter_id: Hashable, amount: int) -> int:
        self.require(voter_id)
        try:
            return self._balances.credit(voter_id, amount)
        except BalanceLedgerError as e:
            raise NotEnoughBalanceError(str(e)) from e

    def ensure_can_debit(self, voter_id: Hashable, amount: int) -> None:
        bal = self.balance_of(voter_id)
        if amount > bal:
            raise NotEnoughBalanceError(
                f"{voter_id} balance {bal} < required {amount}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operator": str(self.operator),
            "initialBalance": self.initial_balance,
            "voterCount": len(self._voters),
            "registrationFees": self._fees_collected,
        }

    def __repr__(self) -> str:
        return f"<VoterRegistry voters={len(self._voters)}>"
