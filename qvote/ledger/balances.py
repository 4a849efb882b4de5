"""
Balance Ledger

Unsigned integer account balances with checked debit / credit primitives.
The voting core only ever talks to the abstract ``BalanceLedger``; the
in-memory implementation mirrors what a host token module provides:

  - balance_of(account) → int (0 for unknown accounts)
  - debit(account, amount)   fails on underflow, never goes negative
  - credit(account, amount)  fails above BALANCE_MAX, never wraps
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..constants import BALANCE_MAX
from ..exceptions import BalanceOverflowError, BalanceUnderflowError, BalanceLedgerError
from ..logger import get_logger

logger = get_logger(__name__)


def _require_amount(amount: int) -> None:
    # bool is an int subclass; True must not pass as 1 token
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise BalanceLedgerError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise BalanceLedgerError(f"Amount cannot be negative: {amount}")


class BalanceLedger(ABC):
    """Host-provided account balances."""

    @abstractmethod
    def balance_of(self, account: Any) -> int:
        """Current balance of *account* (0 if unknown)."""

    @abstractmethod
    def debit(self, account: Any, amount: int) -> int:
        """Remove *amount* and return the new balance."""

    @abstractmethod
    def credit(self, account: Any, amount: int) -> int:
        """Add *amount* and return the new balance."""

    def set_balance(self, account: Any, amount: int) -> int:
        """Make the balance exactly *amount*; returns the new balance."""
        _require_amount(amount)
        if amount > BALANCE_MAX:
            raise BalanceOverflowError(f"Balance {amount} for {account} exceeds max balance")
        current = self.balance_of(account)
        if current > amount:
            return self.debit(account, current - amount)
        return self.credit(account, amount - current)

    def can_debit(self, account: Any, amount: int) -> bool:
        return 0 <= amount <= self.balance_of(account)

    def can_credit(self, account: Any, amount: int) -> bool:
        return amount >= 0 and self.balance_of(account) + amount <= BALANCE_MAX


class InMemoryBalanceLedger(BalanceLedger):
    """
    Dictionary-backed balance ledger.

    Tracks total supply alongside the balances so that issuance and
    destruction can be audited: every credit mints, every debit removes
    from circulation. Whoever calls debit decides what the removed
    tokens mean (a fee, a reservation, a burn).
    """

    def __init__(self):
        self._balances: Dict[Any, int] = {}
        self._total_supply = 0

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: Any) -> int:
        return self._balances.get(account, 0)

    def accounts(self) -> Dict[Any, int]:
        return dict(self._balances)

    # ── Primitives ────────────────────────────────────────────────────

    def debit(self, account: Any, amount: int) -> int:
        _require_amount(amount)
        bal = self.balance_of(account)
        if bal < amount:
            raise BalanceUnderflowError(
                f"{account} balance {bal} < debit amount {amount}"
            )
        self._balances[account] = bal - amount
        self._total_supply -= amount
        logger.debug(f"Debit: {account} amount={amount} balance={bal - amount}")
        return bal - amount

    def credit(self, account: Any, amount: int) -> int:
        _require_amount(amount)
        bal = self.balance_of(account)
        if bal + amount > BALANCE_MAX:
            raise BalanceOverflowError(
                f"Crediting {amount} to {account} would exceed max balance"
            )
        self._balances[account] = bal + amount
        self._total_supply += amount
        logger.debug(f"Credit: {account} amount={amount} balance={bal + amount}")
        return bal + amount

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accounts": len(self._balances),
            "totalSupply": self._total_supply,
        }

    def __repr__(self) -> str:
        return f"<InMemoryBalanceLedger accounts={len(self._balances)} supply={self._total_supply}>"
