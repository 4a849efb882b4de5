"""
Block Height Clock

The ledger never owns time: every closing decision is a pure function of the
height reported by the host's clock at call time. ``ManualClock`` is the
in-process implementation used by embedders and the test suite.
"""

from abc import ABC, abstractmethod

from ..exceptions import ClockError
from ..logger import get_logger

logger = get_logger(__name__)


class Clock(ABC):
    """Monotonically increasing block height counter."""

    @abstractmethod
    def current_height(self) -> int:
        """Return the current block height."""


class ManualClock(Clock):
    """Clock driven explicitly by the host (one tick per applied block)."""

    def __init__(self, height: int = 0):
        if not isinstance(height, int) or height < 0:
            raise ClockError(f"Clock height must be a non-negative integer, got {height!r}")
        self._height = height

    def current_height(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        """Move the clock forward by *blocks* and return the new height."""
        if not isinstance(blocks, int) or blocks < 0:
            raise ClockError(f"Cannot advance clock by {blocks!r}")
        self._height += blocks
        return self._height

    def set_height(self, height: int) -> int:
        """Jump to *height*. Going backwards is rejected."""
        if not isinstance(height, int) or height < self._height:
            raise ClockError(
                f"Clock is monotonic: cannot move from {self._height} to {height!r}"
            )
        self._height = height
        logger.debug(f"Clock set to height {height}")
        return self._height

    def __repr__(self) -> str:
        return f"<ManualClock height={self._height}>"
