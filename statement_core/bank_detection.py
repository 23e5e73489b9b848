"""
Bank Detection Module
Identifies the issuing bank and pulls statement header metadata
(account, period, balances, currency) from normalized text.

Bank variants match as whole tokens on case-folded text rather than as bare
substrings, so "DB" does not fire inside "FEEDBACK" and "MCBLTD" is not MCB.
The currency is read only from a "Currency : XXX" header line.
"""

import re
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from statement_core.normalizer import DATE_PATTERN, parse_amount_safe, parse_date_safe
from statement_core.settings import DEFAULT_PERIOD_DAYS

logger = logging.getLogger(__name__)


GENERIC_BANK_NAME = 'Banking Institution'
DEFAULT_ACCOUNT_NUMBER = '000000000'


# =============================================================================
# BANK NAME VARIANTS (priority order)
# =============================================================================

BANK_VARIANTS: List[Tuple[str, Tuple[str, ...]]] = [
    ('MCB', ('MCB', 'Mauritius Commercial Bank', 'MCB Ltd', 'MCB Limited')),
    ('HSBC', ('HSBC', 'Hong Kong Shanghai Banking')),
    ('Standard Chartered', ('Standard Chartered', 'SCB')),
    ('Barclays', ('Barclays', 'ABSA')),
    ('SBI', ('SBI', 'State Bank of India')),
    ('MauBank', ('MauBank', 'Mau Bank')),
    ('Bank One', ('Bank One',)),
    ('AfrAsia', ('AfrAsia', 'Afr Asia', 'AfrAsia Bank')),
    ('ABC Banking', ('ABC Banking', 'ABC Bank')),
    ('BCP Bank', ('BCP Bank', 'BCP')),
    ('Citi', ('Citi', 'Citibank')),
    ('SBM', ('SBM', 'State Bank of Mauritius', 'SBM Bank')),
    ('Bank of Mauritius', ('Bank of Mauritius', 'BOM')),
    ('Deutsche Bank', ('Deutsche Bank', 'DB')),
]


def _variant_regex(variant: str) -> re.Pattern:
    # Variants must stand as whole tokens: "DB" must not fire inside "FEEDBACK".
    return re.compile(r'(?<![a-z0-9])' + re.escape(variant.casefold()) + r'(?![a-z0-9])')


_COMPILED_VARIANTS = [
    (bank, [_variant_regex(v) for v in variants])
    for bank, variants in BANK_VARIANTS
]


def identify_bank(text: str) -> str:
    """
    Return the canonical bank name for the first variant found in `text`.
    Returns GENERIC_BANK_NAME when nothing matches.
    """
    folded = (text or '').casefold()
    for bank, patterns in _COMPILED_VARIANTS:
        for pattern in patterns:
            if pattern.search(folded):
                logger.debug("Bank variant matched: %s -> %s", pattern.pattern, bank)
                return bank
    return GENERIC_BANK_NAME


# =============================================================================
# HEADER METADATA
# =============================================================================

ACCOUNT_NUMBER_PATTERN = re.compile(r'Account\s*(?:number|No\.?|#)?\s*[.:]\s*(\d+)', re.IGNORECASE)
ACCOUNT_NAME_PATTERN = re.compile(r'Account\s+Name\s*[.:]\s*([^\n]+)', re.IGNORECASE)
CURRENCY_PATTERN = re.compile(r'^[ \t]*(?i:Currency)[ \t]*[.:][ \t]*([A-Z]{3})\b', re.MULTILINE)

PERIOD_PATTERNS = [
    re.compile(r'Statement\s+from\s+(' + DATE_PATTERN + r')\s+to\s+(' + DATE_PATTERN + r')', re.IGNORECASE),
    re.compile(r'(?:Statement\s+Period|Period)\s*[:\s]\s*(' + DATE_PATTERN + r')\s*(?:to|through|-)\s*(' + DATE_PATTERN + r')',
               re.IGNORECASE),
]

OPENING_BALANCE_PATTERN = re.compile(r'Opening\s+balance\s*[:;]?\s*(-?[\d,]+\.\d{2})', re.IGNORECASE)
CLOSING_BALANCE_PATTERN = re.compile(r'Closing\s+balance\s*[:;]?\s*(-?[\d,]+\.\d{2})', re.IGNORECASE)


def extract_account_number(text: str) -> str:
    match = ACCOUNT_NUMBER_PATTERN.search(text or '')
    return match.group(1) if match else DEFAULT_ACCOUNT_NUMBER


def extract_account_name(text: str) -> Optional[str]:
    match = ACCOUNT_NAME_PATTERN.search(text or '')
    if not match:
        return None
    name = re.sub(r'\s+', ' ', match.group(1)).strip()
    return name or None


def extract_statement_period(text: str, today: Optional[date] = None) -> Tuple[date, date, bool]:
    """
    Statement period as (start, end, found).

    Defaults to the DEFAULT_PERIOD_DAYS days ending `today` when the text
    carries no usable period.
    """
    for pattern in PERIOD_PATTERNS:
        match = pattern.search(text or '')
        if not match:
            continue
        start = parse_date_safe(match.group(1))
        end = parse_date_safe(match.group(2))
        if start and end:
            if start > end:
                start, end = end, start
            return start, end, True

    end = today or date.today()
    return end - timedelta(days=DEFAULT_PERIOD_DAYS), end, False


def extract_balances(text: str) -> Tuple[Optional[float], Optional[float]]:
    """Opening and closing balances as printed, or None when absent."""
    opening = None
    closing = None
    match = OPENING_BALANCE_PATTERN.search(text or '')
    if match:
        opening = parse_amount_safe(match.group(1))
    match = CLOSING_BALANCE_PATTERN.search(text or '')
    if match:
        closing = parse_amount_safe(match.group(1))
    return opening, closing


def extract_currency(text: str) -> Optional[str]:
    match = CURRENCY_PATTERN.search(text or '')
    return match.group(1) if match else None


def extract_header_info(text: str, today: Optional[date] = None) -> Dict:
    """
    Collect every header field in one pass.
    Missing values come back as None (period falls back to a default window).
    """
    period_start, period_end, period_found = extract_statement_period(text, today)
    opening, closing = extract_balances(text)
    return {
        'bank_name': identify_bank(text),
        'account_number': extract_account_number(text),
        'account_name': extract_account_name(text),
        'period_start': period_start,
        'period_end': period_end,
        'period_found': period_found,
        'opening_balance': opening,
        'closing_balance': closing,
        'currency': extract_currency(text),
    }
