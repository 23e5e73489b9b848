"""
Normalizer Module
Line normalization plus the date and amount parsing helpers shared by every
dialect.

Dates on the supported statements are day-first (DD/MM/YYYY).
"""

import re
from datetime import date, datetime
from typing import List, Optional

from dateutil import parser as date_parser

from statement_core.models import LineStream
from statement_core.settings import MIN_LINE_LENGTH


# Money always carries exactly two decimals; this keeps concatenated columns
# ("100.005000.00") splittable.
MONEY_PATTERN = r'[\d,]+\.\d{2}'
# Balances may be overdrawn: leading or trailing minus.
SIGNED_MONEY_PATTERN = r'-?' + MONEY_PATTERN + r'-?'
DATE_PATTERN = r'\d{1,2}/\d{1,2}/\d{2,4}'

MONEY_RE = re.compile(MONEY_PATTERN)
SIGNED_MONEY_RE = re.compile(SIGNED_MONEY_PATTERN)
DATE_RE = re.compile(DATE_PATTERN)

DATE_FORMATS = [
    '%d/%m/%Y', '%d/%m/%y',
    '%d-%m-%Y', '%d-%m-%y',
    '%d.%m.%Y',
    '%Y-%m-%d',
    '%d %b %Y', '%d %B %Y',
    '%b %d, %Y', '%B %d, %Y',
]


def normalize_lines(text: str, min_length: int = MIN_LINE_LENGTH) -> List[str]:
    """
    Split raw text into trimmed physical lines.

    Handles \\r\\n, \\r and form-feed page breaks. Blank lines and lines
    shorter than `min_length` are dropped.
    """
    if not text:
        return []
    unified = text.replace('\r\n', '\n').replace('\r', '\n').replace('\f', '\n')
    lines = []
    for line in unified.split('\n'):
        line = line.strip()
        if line and len(line) >= min_length:
            lines.append(line)
    return lines


def make_line_stream(text: str, min_length: int = MIN_LINE_LENGTH) -> LineStream:
    return LineStream(tuple(normalize_lines(text, min_length)))


def parse_date_safe(date_str: str) -> Optional[date]:
    """
    Parse a statement date, day-first.

    Handles:
    - DD/MM/YYYY, DD/MM/YY
    - DD-MM-YYYY, DD.MM.YYYY
    - YYYY-MM-DD
    - 01 Mar 2024, Mar 01, 2024
    """
    if not date_str or not date_str.strip():
        return None

    date_str = date_str.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    try:
        return date_parser.parse(date_str, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def parse_amount_safe(amount_str: str) -> Optional[float]:
    """
    Parse a money string to float.

    Handles:
    - 1,234.56
    - (1,234.56) - negative
    - 1234.56-  - negative suffix
    - -1,234.56
    - Rs / MUR / $ prefixes
    """
    if amount_str is None:
        return None

    s = str(amount_str).strip()
    if not s:
        return None

    negative = False
    if s.startswith('(') and s.endswith(')'):
        negative = True
        s = s[1:-1]
    if s.endswith('-'):
        negative = True
        s = s[:-1]
    if s.startswith('-'):
        negative = True
        s = s[1:]

    s = re.sub(r'^(?:Rs\.?|MUR|\$)', '', s.strip(), flags=re.IGNORECASE)
    s = s.replace(',', '').replace(' ', '').strip()

    try:
        val = float(s)
    except ValueError:
        return None
    return -val if negative else val


def find_amounts(text: str) -> List[str]:
    """All money-shaped substrings of `text`, left to right."""
    return MONEY_RE.findall(text or '')


def find_signed_amounts(text: str) -> List[str]:
    """Like find_amounts, keeping an attached minus sign."""
    return SIGNED_MONEY_RE.findall(text or '')


def collapse_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text or '').strip()
