"""
Direction Module
Decides credit vs debit for a transaction and threads the running balance
from one transaction to the next.

Three sources of direction, used per dialect:
- explicit debit/credit columns (authoritative when both are present)
- indicator words on the line (DR/CR, DEBIT/CREDIT, signs)
- running-balance delta against the previously known balance
"""

import re
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from statement_core.models import Direction
from statement_core.settings import BALANCE_TOLERANCE

logger = logging.getLogger(__name__)


# Checked in order; debit markers first, first hit wins.
DEBIT_INDICATORS = [
    ('DR', re.compile(r'(?<![A-Z])DR(?![A-Z])')),
    ('DEBIT', re.compile(r'DEBIT')),
    ('WITHDRAWAL', re.compile(r'WITHDRAWAL')),
    ('PAYMENT', re.compile(r'PAYMENT')),
    ('-', re.compile(r'-\s?[\d,]+\.\d{2}|[\d,]+\.\d{2}-')),
]

CREDIT_INDICATORS = [
    ('CR', re.compile(r'(?<![A-Z])CR(?![A-Z])')),
    ('CREDIT', re.compile(r'CREDIT')),
    ('DEPOSIT', re.compile(r'DEPOSIT')),
    ('+', re.compile(r'\+\s?[\d,]+\.\d{2}')),
]


def direction_from_indicators(text: str) -> Optional[Direction]:
    """Direction named on the line itself, or None if it names none."""
    upper = (text or '').upper()
    for name, pattern in DEBIT_INDICATORS:
        if pattern.search(upper):
            logger.debug("Debit indicator %r found", name)
            return Direction.DEBIT
    for name, pattern in CREDIT_INDICATORS:
        if pattern.search(upper):
            logger.debug("Credit indicator %r found", name)
            return Direction.CREDIT
    return None


def direction_from_columns(debit: float, credit: float) -> Direction:
    """
    Direction from separate debit and credit columns.

    Both populated is contradictory; debit wins.
    """
    if debit > 0 and credit > 0:
        logger.warning("Both debit (%.2f) and credit (%.2f) populated, treating as debit", debit, credit)
        return Direction.DEBIT
    if credit > 0:
        return Direction.CREDIT
    return Direction.DEBIT


def direction_from_balance(previous: Optional[float], new_balance: float) -> Optional[Direction]:
    """Credit if the balance rose, debit if it fell, None if unknown or flat."""
    if previous is None:
        return None
    if new_balance > previous:
        return Direction.CREDIT
    if new_balance < previous:
        return Direction.DEBIT
    return None


@dataclass(frozen=True)
class RunningBalance:
    """
    Balance after the last emitted transaction.

    Immutable: every step returns a new accumulator, so each extraction step
    can be checked on its own.
    """
    value: Optional[float] = None
    mismatches: int = 0

    @property
    def known(self) -> bool:
        return self.value is not None

    def expected_after(self, direction: Direction, amount: float) -> float:
        base = self.value if self.value is not None else 0.0
        if direction == Direction.CREDIT:
            return round(base + amount, 2)
        return round(base - amount, 2)

    def reseed(self, value: float) -> 'RunningBalance':
        return RunningBalance(round(value, 2), self.mismatches)


def apply_transaction(running: RunningBalance, direction: Direction, amount: float,
                      reported: Optional[float] = None,
                      tolerance: float = BALANCE_TOLERANCE) -> Tuple[float, RunningBalance]:
    """
    Advance the running balance by one transaction.

    Returns (balance to record, new accumulator). A reported balance always
    wins; when it disagrees with the derived one the mismatch is logged and
    counted, never raised.
    """
    if reported is None:
        derived = running.expected_after(direction, amount)
        return derived, RunningBalance(derived, running.mismatches)

    reported = round(reported, 2)
    mismatches = running.mismatches
    if running.known:
        derived = running.expected_after(direction, amount)
        if abs(derived - reported) > tolerance:
            mismatches += 1
            logger.warning(
                "Running balance mismatch: previous %.2f %s %.2f = %.2f, statement says %.2f",
                running.value, '+' if direction == Direction.CREDIT else '-', amount, derived, reported,
            )
    return reported, RunningBalance(reported, mismatches)
