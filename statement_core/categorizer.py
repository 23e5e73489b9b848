"""
Categorizer Module
Keyword-to-category lookup over transaction descriptions.

Keywords are tried in declared order and the first one found wins, so the
more specific expense keywords sit ahead of the generic PAYMENT / TRANSFER
ones ("MONTHLY RENT PAYMENT" is Housing, not Income). A keyword must start
a word: "CURRENT" is not RENT and "COFFEE" is not FEE.
"""

import re
from typing import List, Optional, Tuple


UNCATEGORIZED = 'Uncategorized'

CATEGORY_KEYWORDS: List[Tuple[str, str]] = [
    ('SALARY', 'Income'),
    ('DIVIDEND', 'Income'),
    ('INTEREST', 'Income'),
    ('REFUND', 'Income'),
    ('RENT', 'Housing'),
    ('MORTGAGE', 'Housing'),
    ('GROCERY', 'Groceries'),
    ('SUPERMARKET', 'Groceries'),
    ('RESTAURANT', 'Dining'),
    ('CAFE', 'Dining'),
    ('UTILITY', 'Utilities'),
    ('ELECTRICITY', 'Utilities'),
    ('WATER', 'Utilities'),
    ('ONLINE SHOPPING', 'Shopping'),
    ('PURCHASE', 'Shopping'),
    ('TRANSPORTATION', 'Transport'),
    ('MEDICAL', 'Healthcare'),
    ('INSURANCE', 'Insurance'),
    ('MOBILE', 'Telecommunications'),
    ('PHONE', 'Telecommunications'),
    ('INTERNET', 'Telecommunications'),
    ('SUBSCRIPTION', 'Entertainment'),
    ('ATM', 'Cash Withdrawal'),
    ('WITHDRAWAL', 'Cash Withdrawal'),
    ('FEE', 'Bank Charges'),
    ('TRANSFER', 'Transfer'),
    ('DEPOSIT', 'Income'),
    ('PAYMENT', 'Income'),
]

KEYWORD_PATTERNS = [(re.compile(r'\b' + re.escape(keyword)), category)
                    for keyword, category in CATEGORY_KEYWORDS]


def categorize(description: str, fallback: Optional[str] = None) -> str:
    """
    Category for `description`; `fallback` text (e.g. the payment reference)
    is used only when the description is empty.
    """
    text = description if description and description.strip() else (fallback or '')
    upper = text.upper()
    for pattern, category in KEYWORD_PATTERNS:
        if pattern.search(upper):
            return category
    return UNCATEGORIZED
