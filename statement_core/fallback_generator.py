"""
Fallback Generator Module
Builds a synthetic, balance-consistent statement when nothing usable could be
extracted (read failure, OCR failure, or zero transactions).

The output is always valid: the requested number of transactions, dates inside
the period, and a running balance replayed in date order from the opening
balance, so end balance = start balance + credits - debits exactly.
"""

import math
import random
import logging
from datetime import date, timedelta
from typing import List, Optional

from statement_core.categorizer import categorize
from statement_core.models import BankDialect, Direction, Statement, Transaction, SOURCE_FALLBACK
from statement_core.settings import (
    DEFAULT_CURRENCY,
    DEFAULT_PERIOD_DAYS,
    FALLBACK_BASE_AMOUNT,
    FALLBACK_TRANSACTION_COUNT,
)

logger = logging.getLogger(__name__)


CREDIT_SHARE = 0.3

CREDIT_DESCRIPTIONS = [
    'SALARY PAYMENT', 'TRANSFER RECEIVED', 'DEPOSIT', 'INTEREST PAYMENT',
    'CLIENT PAYMENT', 'REFUND', 'DIVIDEND',
]

DEBIT_DESCRIPTIONS = [
    'GROCERY PURCHASE', 'UTILITY PAYMENT', 'RESTAURANT', 'ONLINE SHOPPING',
    'TRANSPORTATION', 'MEDICAL EXPENSE', 'INSURANCE PREMIUM', 'RENT PAYMENT',
    'MOBILE PHONE BILL', 'SUBSCRIPTION',
]

FALLBACK_BANK_NAME = 'Demo Bank'
FALLBACK_ACCOUNT_NAME = 'Demo Account'


def credit_count_for(count: int) -> int:
    # 10 * 0.3 is 3.0000000000000004 in floating point
    return math.ceil(round(count * CREDIT_SHARE, 9))


def size_hint_parameters(size_hint: int):
    """(base_amount, transaction_count) derived from a document size in bytes."""
    size_hint = max(0, int(size_hint))
    return 10000 + size_hint % 10000, max(5, size_hint // 1000)


def generate_transactions(count: int, start: date, end: date,
                          total_credits: float, total_debits: float,
                          opening_balance: float,
                          rng: Optional[random.Random] = None) -> List[Transaction]:
    """
    Synthesize `count` transactions in [start, end], sorted by date. A zero
    count gives an empty list.

    ceil(30%) are credits sharing `total_credits`, the rest debits sharing
    `total_debits`; each amount varies 0.7x-1.3x around its even share.
    Running balances are replayed from `opening_balance` after sorting.
    """
    rng = rng or random.Random()
    count = max(0, int(count))
    if start > end:
        start, end = end, start
    span_days = (end - start).days

    credit_count = credit_count_for(count)
    debit_count = count - credit_count
    credit_share = total_credits / credit_count if credit_count else 0.0
    debit_share = total_debits / debit_count if debit_count else 0.0

    drafts = []
    for i in range(count):
        is_credit = i < credit_count
        day = start + timedelta(days=rng.randint(0, span_days))
        if is_credit:
            description = rng.choice(CREDIT_DESCRIPTIONS)
            share = credit_share
        else:
            description = rng.choice(DEBIT_DESCRIPTIONS)
            share = debit_share
        amount = max(1, round(share * (0.7 + rng.random() * 0.6)))
        drafts.append((day, is_credit, description, float(amount)))

    drafts.sort(key=lambda d: d[0])

    transactions = []
    balance = round(opening_balance, 2)
    for day, is_credit, description, amount in drafts:
        direction = Direction.CREDIT if is_credit else Direction.DEBIT
        balance = round(balance + amount if is_credit else balance - amount, 2)
        transactions.append(Transaction(
            date=day,
            description=description,
            amount=amount,
            direction=direction,
            balance=balance,
            category=categorize(description),
        ))
    return transactions


def generate_statement(base_amount: float = FALLBACK_BASE_AMOUNT,
                       transaction_count: int = FALLBACK_TRANSACTION_COUNT,
                       period_start: Optional[date] = None,
                       period_end: Optional[date] = None,
                       opening_balance: Optional[float] = None,
                       currency: str = DEFAULT_CURRENCY,
                       bank_name: str = FALLBACK_BANK_NAME,
                       account_number: Optional[str] = None,
                       account_name: Optional[str] = FALLBACK_ACCOUNT_NAME,
                       rng: Optional[random.Random] = None,
                       reason: str = '') -> Statement:
    """
    A complete synthetic statement.

    Credit total is base + U[0, 15000], debit total base - U[0, 5000]. The
    opening balance defaults to the debit total when none is supplied.
    """
    rng = rng or random.Random()
    period_end = period_end or date.today()
    period_start = period_start or period_end - timedelta(days=DEFAULT_PERIOD_DAYS)

    total_credits = float(base_amount + rng.randint(0, 15000))
    total_debits = float(max(0, base_amount - rng.randint(0, 5000)))
    if opening_balance is None:
        opening_balance = total_debits
    if account_number is None:
        account_number = str(rng.randint(0, 9999999999)).zfill(10)

    transactions = generate_transactions(
        transaction_count, period_start, period_end,
        total_credits, total_debits, opening_balance, rng,
    )
    end_balance = transactions[-1].balance if transactions else round(opening_balance, 2)

    logger.warning("Generated fallback statement with %d transactions (%s)",
                   len(transactions), reason or 'no reason given')

    warnings = ['Synthetic statement generated: ' + (reason or 'extraction unavailable')]
    return Statement(
        bank_name=bank_name,
        account_number=account_number,
        account_name=account_name,
        period_start=min(period_start, period_end),
        period_end=max(period_start, period_end),
        start_balance=round(opening_balance, 2),
        end_balance=end_balance,
        currency=currency,
        transactions=transactions,
        dialect=BankDialect.GENERIC,
        source=SOURCE_FALLBACK,
        is_synthetic=True,
        warnings=warnings,
    )
