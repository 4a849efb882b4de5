"""
Host collaborators consumed by the voting core.

Provides:
  - Clock / ManualClock                      (clock.py)
  - BalanceLedger / InMemoryBalanceLedger    (balances.py)
"""

from .balances import BalanceLedger, InMemoryBalanceLedger
from .clock import Clock, ManualClock

__all__ = [
    "BalanceLedger",
    "Clock",
    "InMemoryBalanceLedger",
    "ManualClock",
]
