"""
Statement Models Module
Data structures shared by every stage of the parsing pipeline.
"""

import re
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass, field


class BankDialect(str, Enum):
    """Extraction strategy families. Chosen once per document."""
    MCB = 'mcb'
    MCB_RAW = 'mcb_raw'
    GENERIC = 'generic'


class Direction(str, Enum):
    CREDIT = 'credit'
    DEBIT = 'debit'


SOURCE_DIRECT = 'direct'
SOURCE_OCR = 'ocr'
SOURCE_FALLBACK = 'fallback'


@dataclass(frozen=True)
class RawDocument:
    """Text recovered from a statement, tagged with how it was recovered."""
    text: str
    source: str = SOURCE_DIRECT

    @property
    def density(self) -> int:
        return len(self.text.strip()) if self.text else 0


@dataclass
class LineStream:
    """
    Normalized physical lines plus a read cursor.

    Owned by one reconstruction pass. Lines are consumed by index and never
    mutated; the cursor only moves forward.
    """
    lines: Tuple[str, ...]
    position: int = 0

    def __post_init__(self):
        self.lines = tuple(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def at_end(self) -> bool:
        return self.position >= len(self.lines)

    def peek(self) -> Optional[str]:
        if self.at_end():
            return None
        return self.lines[self.position]

    def advance(self) -> str:
        """Return the line under the cursor and step past it."""
        if self.at_end():
            raise IndexError('LineStream exhausted')
        line = self.lines[self.position]
        self.position += 1
        return line

    def absorb_until(self, stop: Callable[[str], bool]) -> Tuple[str, int]:
        """
        Consume lines until `stop(line)` is true or the stream ends.

        Returns the absorbed lines joined by single spaces (whitespace runs
        collapsed) and the new cursor position. The stopping line itself is
        left unconsumed.
        """
        absorbed = []
        while not self.at_end() and not stop(self.lines[self.position]):
            absorbed.append(self.lines[self.position])
            self.position += 1
        joined = re.sub(r'\s+', ' ', ' '.join(absorbed)).strip()
        return joined, self.position


@dataclass
class TransactionCandidate:
    """Raw captures for one anchor line before they become a Transaction."""
    line_number: int
    anchor: str
    date_text: str
    debit_text: Optional[str] = None
    credit_text: Optional[str] = None
    balance_text: Optional[str] = None
    detail: str = ''

    @property
    def columns_explicit(self) -> bool:
        """Both the debit and the credit slot were present on the line."""
        return self.debit_text is not None and self.credit_text is not None


@dataclass
class Transaction:
    date: date
    description: str
    amount: float
    direction: Direction
    balance: float
    reference: Optional[str] = None
    counterparty: Optional[str] = None
    category: str = 'Uncategorized'

    def __post_init__(self):
        self.direction = Direction(self.direction)
        if self.amount is None or self.amount <= 0:
            raise ValueError(f"Transaction amount must be positive, got {self.amount!r}")

    @property
    def signed_amount(self) -> float:
        return self.amount if self.direction == Direction.CREDIT else -self.amount

    def to_dict(self) -> Dict:
        return {
            'date': self.date.isoformat(),
            'description': self.description,
            'amount': self.amount,
            'type': self.direction.value,
            'balance': self.balance,
            'reference': self.reference or '',
            'destinatory': self.counterparty or '',
            'category': self.category,
        }


@dataclass
class Statement:
    """
    One parsed statement. Owns its transactions.

    Credit and debit totals are always derived from the transaction list.
    """
    bank_name: str
    account_number: str
    period_start: date
    period_end: date
    start_balance: float
    end_balance: float
    currency: str
    transactions: List[Transaction] = field(default_factory=list)
    account_name: Optional[str] = None
    dialect: BankDialect = BankDialect.GENERIC
    source: str = SOURCE_DIRECT
    is_synthetic: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def period(self) -> Tuple[date, date]:
        return self.period_start, self.period_end

    @property
    def total_credits(self) -> float:
        return round(sum(t.amount for t in self.transactions if t.direction == Direction.CREDIT), 2)

    @property
    def total_debits(self) -> float:
        return round(sum(t.amount for t in self.transactions if t.direction == Direction.DEBIT), 2)

    @property
    def credit_count(self) -> int:
        return sum(1 for t in self.transactions if t.direction == Direction.CREDIT)

    @property
    def debit_count(self) -> int:
        return sum(1 for t in self.transactions if t.direction == Direction.DEBIT)

    @property
    def balance_divergence(self) -> float:
        """(end - start) minus (credits - debits). Zero for a coherent statement."""
        movement = self.end_balance - self.start_balance
        return round(movement - (self.total_credits - self.total_debits), 2)

    def to_dict(self, include_transactions: bool = True) -> Dict:
        data = {
            'bank_name': self.bank_name,
            'account_number': self.account_number,
            'account_name': self.account_name or '',
            'period': {
                'start': self.period_start.isoformat(),
                'end': self.period_end.isoformat(),
            },
            'start_balance': self.start_balance,
            'end_balance': self.end_balance,
            'total_credits': self.total_credits,
            'total_debits': self.total_debits,
            'currency': self.currency,
            'transaction_count': len(self.transactions),
            'dialect': self.dialect.value,
            'source': self.source,
            'is_synthetic': self.is_synthetic,
            'balance_divergence': self.balance_divergence,
            'warnings': list(self.warnings),
        }
        if include_transactions:
            data['transactions'] = [t.to_dict() for t in self.transactions]
        return data
