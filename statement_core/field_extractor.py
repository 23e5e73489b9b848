"""
Field Extractor Module
Splits the detail text of a structured transaction into description,
payment reference and counterparty ("destinatory").

Rules, in order:
1. Find a reference: a transfer/payment keyword followed by a transaction code.
2. After the reference, a backslash escape code (\\BNK, \\BPR, ...) separates
   remaining description text from the counterparty.
3. Without a separator, the remainder is the counterparty when it opens with a
   title, a legal-entity suffix or looks like an upper-case name.
"""

import re
from typing import NamedTuple, Optional

from statement_core.normalizer import collapse_whitespace


REFERENCE_KEYWORDS = [
    'JuicePro Transfer',
    'Instant Payment',
    'Inward Transfer',
    'Cash Cheque',
    'JUICE Payment',
    'Direct Debit Scheme',
    'Merchant Instant Payment',
    'Tax Amount Due',
    'Service Fee',
    'Statement Fee',
]

# Keyword is case-insensitive; the code is upper-case alphanumeric with at
# least one digit (FT24061ABCD, TT123456, 00045122).
REFERENCE_RE = re.compile(
    r'((?i:' + '|'.join(re.escape(k) for k in REFERENCE_KEYWORDS) + r')\s+(?:FT|TT)?[A-Z0-9]*\d[A-Z0-9]*)'
)

SEPARATOR_RE = re.compile(r'(\\[A-Z]{3})')

COUNTERPARTY_KEYWORDS = {'BNK', 'BPR', 'MR', 'MRS', 'MISS', 'MS', 'LTD', 'CO', '&'}

LEGAL_ENTITY_RE = re.compile(r"^[A-Z\s.&'-]+?(?:CO\s+)?LTD\b", re.IGNORECASE)
TITLE_RE = re.compile(r'^(?:MR|MRS|MS|MISS)\.?\s', re.IGNORECASE)
CAPS_NAME_RE = re.compile(r"^[A-Z][A-Z.'&-]*(?:\s+[A-Z][A-Z.'&-]*)+$")


class DetailFields(NamedTuple):
    description: str
    reference: Optional[str]
    counterparty: Optional[str]


def looks_like_counterparty(text: str) -> bool:
    """True when `text` reads as a payee name rather than narrative."""
    if not text:
        return False
    first_word = text.split(' ')[0].upper().rstrip('.')
    if first_word in COUNTERPARTY_KEYWORDS:
        return True
    if LEGAL_ENTITY_RE.match(text) or TITLE_RE.match(text):
        return True
    return bool(CAPS_NAME_RE.match(text))


def split_detail(detail: str) -> DetailFields:
    """Split joined continuation text into (description, reference, counterparty)."""
    detail = collapse_whitespace(detail)
    ref_match = REFERENCE_RE.search(detail)
    if not ref_match:
        return DetailFields(detail, None, None)

    reference = collapse_whitespace(ref_match.group(1))
    text_before = detail[:ref_match.start()].strip()
    text_after = detail[ref_match.end():].strip()

    description = f"{text_before} {reference}" if text_before else reference
    counterparty = None

    sep_match = SEPARATOR_RE.search(text_after)
    if sep_match:
        part_before_sep = text_after[:sep_match.start()].strip()
        potential = text_after[sep_match.end():].strip()
        if part_before_sep:
            description += ' ' + part_before_sep
        description += sep_match.group(1)
        counterparty = potential or None
        text_after = ''

    if text_after:
        if looks_like_counterparty(text_after):
            counterparty = text_after
        else:
            description += ' ' + text_after

    return DetailFields(
        collapse_whitespace(description),
        reference,
        collapse_whitespace(counterparty) if counterparty else None,
    )
