"""
Bank Statement Parsers Module
Record reconstructors for each supported statement dialect, plus the router
that picks one per document.

Supported dialects:
- MCB (structured multi-column: two dates, optional debit/credit, balance,
  description on the following lines)
- MCB raw (single-line records, direction from balance movement)
- Generic fallback (one date per line, direction from indicator words)

Each reconstructor takes the full text and a RunningBalance and returns
(transactions, updated RunningBalance). Transactions come out in the order
their anchor lines appear; nothing is re-sorted.
"""

import re
import logging
from typing import Callable, Dict, List, Optional, Tuple, Union

from statement_core.categorizer import categorize
from statement_core.direction import (
    RunningBalance,
    apply_transaction,
    direction_from_balance,
    direction_from_columns,
    direction_from_indicators,
)
from statement_core.field_extractor import split_detail
from statement_core.models import BankDialect, Direction, Transaction, TransactionCandidate
from statement_core.normalizer import (
    DATE_PATTERN,
    MONEY_PATTERN,
    SIGNED_MONEY_PATTERN,
    collapse_whitespace,
    find_amounts,
    find_signed_amounts,
    make_line_stream,
    parse_amount_safe,
    parse_date_safe,
)
from statement_core.settings import MCB_MIN_LINE_LENGTH, MIN_LINE_LENGTH

logger = logging.getLogger(__name__)

ParseResult = Tuple[List[Transaction], RunningBalance]


def _money(text: Optional[str]) -> float:
    """Column value as a non-negative float; blanks and '-' placeholders are 0."""
    if text is None or text == '-':
        return 0.0
    value = parse_amount_safe(text)
    return abs(value) if value is not None else 0.0


def _balance(text: Optional[str]) -> Optional[float]:
    """Balance column as a signed float; overdrawn balances stay negative."""
    if text is None or text == '-':
        return None
    return parse_amount_safe(text)


# =============================================================================
# MCB PARSER (structured multi-column)
# =============================================================================

# Upstream PDF text often loses the spacing between columns, so every gap is
# optional: "01/03/202401/03/2024100.005000.00" is a valid anchor.
# A lone "-" followed by another column stands for an explicitly empty debit
# or credit column. The balance keeps its sign when overdrawn.
MCB_ANCHOR_RE = re.compile(
    r'^(?P<date>\d{2}/\d{2}/\d{4})\s*(?P<value_date>\d{2}/\d{2}/\d{4})\s*'
    r'(?P<debit>' + MONEY_PATTERN + r'|-(?=\s+[-\d]))?\s*'
    r'(?P<credit>' + MONEY_PATTERN + r'|-(?=\s+[-\d]))?\s*'
    r'(?P<balance>' + SIGNED_MONEY_PATTERN + r')\s*$'
)

MCB_STOP_RE = re.compile(
    r'Page\s*:|Balance\s+c/f|Balance\s+b/f|Opening\s+Balance|Closing\s+Balance',
    re.IGNORECASE,
)


def is_mcb_anchor(line: str) -> bool:
    return bool(MCB_ANCHOR_RE.match(line))


def is_mcb_boundary(line: str) -> bool:
    """Lines that end continuation absorption: next anchor, footer or header."""
    return is_mcb_anchor(line) or bool(MCB_STOP_RE.search(line)) or line.startswith('---')


def mcb_candidate(line: str, line_number: int) -> Optional[TransactionCandidate]:
    match = MCB_ANCHOR_RE.match(line)
    if not match:
        return None
    return TransactionCandidate(
        line_number=line_number,
        anchor=line,
        date_text=match.group('date'),
        debit_text=match.group('debit'),
        credit_text=match.group('credit'),
        balance_text=match.group('balance'),
    )


def resolve_mcb_candidate(candidate: TransactionCandidate,
                          running: RunningBalance) -> Tuple[Optional[Transaction], RunningBalance]:
    """
    Turn one structured candidate into a Transaction.

    With both columns on the line, column presence decides the direction.
    With a single surviving amount column its slot cannot be trusted, so the
    balance movement decides, falling back to debit when there is no prior
    balance. Returns (None, running) for candidates that must be skipped.
    """
    debit = _money(candidate.debit_text)
    credit = _money(candidate.credit_text)
    amount = max(debit, credit)

    if amount == 0:
        logger.debug("Skipping line %d: zero amount (%r)", candidate.line_number, candidate.anchor)
        return None, running

    txn_date = parse_date_safe(candidate.date_text)
    if txn_date is None:
        logger.warning("Skipping line %d: bad date %r", candidate.line_number, candidate.date_text)
        return None, running

    reported = _balance(candidate.balance_text)

    if candidate.columns_explicit:
        direction = direction_from_columns(debit, credit)
    else:
        direction = direction_from_balance(running.value, reported) or direction_from_columns(debit, credit)

    balance, running = apply_transaction(running, direction, amount, reported)

    fields = split_detail(candidate.detail)
    txn = Transaction(
        date=txn_date,
        description=fields.description,
        amount=round(amount, 2),
        direction=direction,
        balance=balance,
        reference=fields.reference,
        counterparty=fields.counterparty,
        category=categorize(fields.description, fields.reference),
    )
    logger.debug("Line %d -> %s %.2f %s bal=%.2f ref=%r dest=%r", candidate.line_number,
                 txn.date, txn.amount, txn.direction.value, txn.balance, txn.reference, txn.counterparty)
    return txn, running


def reconstruct_mcb(text: str, running: Optional[RunningBalance] = None) -> ParseResult:
    """
    MCB structured statement parser.

    Format characteristics:
    - Anchor: DD/MM/YYYY DD/MM/YYYY [debit] [credit] balance (spacing optional)
    - Value date (second date) is discarded
    - Description, payment reference and payee follow on the next lines
    - "Page :", "Balance c/f", "Opening Balance" lines end a description
    """
    running = running or RunningBalance()
    stream = make_line_stream(text, MCB_MIN_LINE_LENGTH)
    transactions = []
    skipped = 0

    while not stream.at_end():
        line_number = stream.position + 1
        candidate = mcb_candidate(stream.advance(), line_number)
        if candidate is None:
            continue

        if _money(candidate.debit_text) == 0 and _money(candidate.credit_text) == 0:
            skipped += 1
            logger.debug("Skipping line %d: no debit or credit (%r)", line_number, candidate.anchor)
            continue

        candidate.detail, _ = stream.absorb_until(is_mcb_boundary)
        txn, running = resolve_mcb_candidate(candidate, running)
        if txn is None:
            skipped += 1
            continue
        transactions.append(txn)

    logger.info("MCB parser: %d transactions from %d lines (%d anchors skipped)",
                len(transactions), len(stream), skipped)
    return transactions, running


def extract_mcb_transactions(text: str, opening_balance: Optional[float] = None) -> List[Transaction]:
    transactions, _ = reconstruct_mcb(text, RunningBalance(opening_balance))
    return transactions


# =============================================================================
# MCB RAW PARSER (single line, balance-delta direction)
# =============================================================================

MCB_RAW_DATE_RE = re.compile(r'(\d{2}/\d{2}/\d{4})')
MCB_RAW_BALANCE_RE = re.compile(r'balance(?:\s*:)?\s*(' + SIGNED_MONEY_PATTERN + r')', re.IGNORECASE)
MCB_RAW_MIN_LINE_LENGTH = 5


def reconstruct_mcb_raw(text: str, running: Optional[RunningBalance] = None) -> ParseResult:
    """
    MCB raw export parser.

    Format characteristics:
    - One line per transaction: date, description, amount, balance
    - Last amount on the line is the balance, first is the transaction amount
    - Direction comes from the balance movement
    - "Balance : x" lines reset the running balance
    """
    running = running or RunningBalance()
    stream = make_line_stream(text, MCB_RAW_MIN_LINE_LENGTH)
    transactions = []

    while not stream.at_end():
        line_number = stream.position + 1
        line = stream.advance()

        balance_match = MCB_RAW_BALANCE_RE.search(line)
        if balance_match and not MCB_RAW_DATE_RE.search(line):
            running = running.reseed(_balance(balance_match.group(1)))
            logger.debug("Line %d: running balance reset to %.2f", line_number, running.value)
            continue

        date_match = MCB_RAW_DATE_RE.search(line)
        if not date_match:
            continue

        txn_date = parse_date_safe(date_match.group(1))
        amounts = find_signed_amounts(line)
        if txn_date is None or len(amounts) < 2:
            logger.debug("Skipping line %d: no amount/balance pair (%r)", line_number, line)
            continue

        amount = _money(amounts[0])
        reported = _balance(amounts[-1])
        if amount == 0:
            continue

        direction = (direction_from_balance(running.value, reported)
                     or direction_from_indicators(line)
                     or Direction.DEBIT)
        balance, running = apply_transaction(running, direction, amount, reported)

        description = MCB_RAW_DATE_RE.sub('', line)
        description = collapse_whitespace(re.sub(SIGNED_MONEY_PATTERN, '', description))
        transactions.append(Transaction(
            date=txn_date,
            description=description,
            amount=round(amount, 2),
            direction=direction,
            balance=balance,
            category=categorize(description),
        ))

    logger.info("MCB raw parser: %d transactions", len(transactions))
    return transactions, running


# =============================================================================
# GENERIC FALLBACK PARSER
# =============================================================================

GENERIC_DATE_RE = re.compile(r'(' + DATE_PATTERN + r')')
SECTION_HEADER_RE = re.compile(r'TRANSACTION|DETAILS|DATE')
GENERIC_SKIP_RE = re.compile(
    r'(?:Opening|Closing|Ending|Beginning)\s+Balance|Balance\s+[bc]/f|^Total\b|^Statement\s+from|^(?:Statement\s+)?Period\b',
    re.IGNORECASE,
)
SIGNED_AMOUNT_RE = re.compile(r'[-+]?\s?' + MONEY_PATTERN + r'-?')
DIRECTION_TOKEN_RE = re.compile(r'\b(?:CR|DR|DEBIT|CREDIT)\b', re.IGNORECASE)


def _generic_description(line: str) -> str:
    text = GENERIC_DATE_RE.sub(' ', line)
    text = SIGNED_AMOUNT_RE.sub(' ', text)
    text = DIRECTION_TOKEN_RE.sub(' ', text)
    return collapse_whitespace(text)


def _is_generic_continuation(line: Optional[str]) -> bool:
    if not line:
        return False
    return not (GENERIC_DATE_RE.search(line) or find_amounts(line) or GENERIC_SKIP_RE.search(line))


def reconstruct_generic(text: str, running: Optional[RunningBalance] = None) -> ParseResult:
    """
    Generic parser for banks without a dedicated dialect.

    Strategy:
    1. Ignore preamble until a TRANSACTION/DETAILS/DATE header or a dated line
    2. Any line with a date and at least one amount is a transaction
    3. One amount: the transaction amount, balance derived from the previous one
    4. Two or more: first is the amount, last is the statement's balance
    5. Direction from indicator words (debit markers first), default debit
    6. One following undated line is appended to the description
    """
    running = running or RunningBalance()
    stream = make_line_stream(text, MIN_LINE_LENGTH)
    transactions = []
    in_section = False

    while not stream.at_end():
        line_number = stream.position + 1
        line = stream.advance()
        date_match = GENERIC_DATE_RE.search(line)

        if not in_section:
            if not date_match and SECTION_HEADER_RE.search(line):
                in_section = True
                logger.debug("Transaction section starts at line %d", line_number)
                continue
            if not date_match:
                continue
            in_section = True

        if not date_match or GENERIC_SKIP_RE.search(line):
            continue

        txn_date = parse_date_safe(date_match.group(1))
        if txn_date is None:
            continue

        remainder = line[:date_match.start()] + ' ' + line[date_match.end():]
        amounts = find_signed_amounts(remainder)
        if not amounts:
            continue

        amount = _money(amounts[0])
        description = _generic_description(line)
        if _is_generic_continuation(stream.peek()):
            description = collapse_whitespace(description + ' ' + stream.peek())

        if amount == 0 or not description:
            logger.debug("Skipping line %d: amount=%.2f description=%r", line_number, amount, description)
            continue

        direction = direction_from_indicators(line) or Direction.DEBIT
        reported = _balance(amounts[-1]) if len(amounts) >= 2 else None
        balance, running = apply_transaction(running, direction, amount, reported)

        transactions.append(Transaction(
            date=txn_date,
            description=description,
            amount=round(amount, 2),
            direction=direction,
            balance=balance,
            category=categorize(description),
        ))

    logger.info("Generic parser: %d transactions", len(transactions))
    return transactions, running


def extract_generic_transactions(text: str, opening_balance: Optional[float] = None) -> List[Transaction]:
    transactions, _ = reconstruct_generic(text, RunningBalance(opening_balance))
    return transactions


# =============================================================================
# DIALECT ROUTER
# =============================================================================

DIALECT_BY_BANK: Dict[str, BankDialect] = {
    'MCB': BankDialect.MCB,
}

PARSERS: Dict[BankDialect, Callable[[str, Optional[RunningBalance]], ParseResult]] = {
    BankDialect.MCB: reconstruct_mcb,
    BankDialect.MCB_RAW: reconstruct_mcb_raw,
    BankDialect.GENERIC: reconstruct_generic,
}

_unrouted = set(BankDialect) - set(PARSERS)
if _unrouted:
    raise RuntimeError(f"No parser registered for dialects: {sorted(d.value for d in _unrouted)}")


def select_dialect(bank_name: str, hint: Union[BankDialect, str, None] = None) -> BankDialect:
    """Dialect for a bank; an explicit hint overrides detection."""
    if hint:
        return BankDialect(hint)
    return DIALECT_BY_BANK.get(bank_name, BankDialect.GENERIC)


def parse_transactions(text: str, dialect: BankDialect,
                       opening_balance: Optional[float] = None) -> ParseResult:
    """Run the reconstructor registered for `dialect`."""
    parser = PARSERS[BankDialect(dialect)]
    return parser(text, RunningBalance(opening_balance))
