"""
Quadratic Tally

    weight(R) = isqrt(R)      largest w with w * w <= R

The winner is the closed proposal with the greatest AYE weight; ties go to
the lowest index (first created). Proposals still in CREATED are never
eligible, and nothing is resolved until someone asks: there is no sweep.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable

from ..logger import get_logger
from ..exceptions import InvalidAmountError, NoClosedProposalsError
from .proposals import Proposal

logger = get_logger(__name__)


def quadratic_weight(amount: int) -> int:
    """Integer square root of the committed tokens."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise InvalidAmountError(f"Amount cannot be negative: {amount}")
    return math.isqrt(amount)


@dataclass(frozen=True)
class TallyResult:
    """Outcome of a winner resolution."""
    winner: int
    aye_weight: int
    height: int
    candidates: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner": self.winner,
            "ayeWeight": self.aye_weight,
            "height": self.height,
            "candidates": self.candidates,
        }


class TallyResolver:
    """Stateless winner resolution over proposal records."""

    @staticmethod
    def weight(amount: int) -> int:
        return quadratic_weight(amount)

    def winner(self, proposals: Iterable[Proposal], current_height: int) -> TallyResult:
        """
        Pick the winner among *proposals* that are closed at *current_height*.

        Raises NoClosedProposalsError when none is eligible.
        """
        eligible = sorted(
            (p for p in proposals if p.is_closed(current_height)),
            key=lambda p: p.id,
        )
        if not eligible:
            raise NoClosedProposalsError(
                f"No closed proposals at height {current_height}"
            )

        best = eligible[0]
        for p in eligible[1:]:
            # strict comparison keeps the lowest index on ties
            if p.aye_weight > best.aye_weight:
                best = p

        logger.info(
            f"Tally at height {current_height}: winner #{best.id} "
            f"weight={best.aye_weight} ({len(eligible)} closed)"
        )
        return TallyResult(
            winner=best.id,
            aye_weight=best.aye_weight,
            height=current_height,
            candidates=len(eligible),
        )
