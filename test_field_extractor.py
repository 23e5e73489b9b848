#!/usr/bin/env python3
"""Tests for detail text splitting and categorization."""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from statement_core.categorizer import UNCATEGORIZED, categorize
from statement_core.field_extractor import looks_like_counterparty, split_detail


def test_no_reference_keeps_whole_detail():
    fields = split_detail("  POS PURCHASE   SUPERMARKET ")
    assert fields.description == "POS PURCHASE SUPERMARKET"
    assert fields.reference is None
    assert fields.counterparty is None


def test_separator_splits_counterparty():
    fields = split_detail(r"JuicePro Transfer FT24061ABCD \BNK JOHN DOE")
    assert fields.reference == "JuicePro Transfer FT24061ABCD"
    assert fields.description == r"JuicePro Transfer FT24061ABCD\BNK"
    assert fields.counterparty == "JOHN DOE"


def test_text_between_reference_and_separator_stays_in_description():
    fields = split_detail(r"Instant Payment 00045122 school fees \BPR ROYAL COLLEGE")
    assert fields.description == r"Instant Payment 00045122 school fees\BPR"
    assert fields.counterparty == "ROYAL COLLEGE"


def test_title_introduces_counterparty():
    fields = split_detail("Instant Payment 00045122 MRS JANE DOE")
    assert fields.description == "Instant Payment 00045122"
    assert fields.counterparty == "MRS JANE DOE"


def test_narrative_after_reference_is_description():
    fields = split_detail("Instant Payment 00045122 monthly rent")
    assert fields.description == "Instant Payment 00045122 monthly rent"
    assert fields.counterparty is None


def test_text_before_reference_prefixes_description():
    fields = split_detail("Standing order Direct Debit Scheme 778899")
    assert fields.reference == "Direct Debit Scheme 778899"
    assert fields.description == "Standing order Direct Debit Scheme 778899"


def test_looks_like_counterparty():
    assert looks_like_counterparty("ABC TRADING CO LTD")
    assert looks_like_counterparty("Mr. Smith")
    assert looks_like_counterparty("& SONS")
    assert looks_like_counterparty("JOHN DOE")
    assert not looks_like_counterparty("monthly rent")
    assert not looks_like_counterparty("")


def test_first_matching_keyword_wins():
    assert categorize("MONTHLY RENT PAYMENT") == 'Housing'
    assert categorize("SALARY PAYMENT") == 'Income'
    assert categorize("ATM WITHDRAWAL") == 'Cash Withdrawal'
    assert categorize("MOBILE PHONE BILL") == 'Telecommunications'


def test_categorize_is_case_insensitive():
    assert categorize("grocery purchase") == 'Groceries'


def test_unknown_description_is_uncategorized():
    assert categorize("XYZ") == UNCATEGORIZED
    assert categorize("") == UNCATEGORIZED


def test_reference_is_used_only_for_empty_description():
    assert categorize("", "JuicePro Transfer FT1") == 'Transfer'
    assert categorize("SALARY", "JuicePro Transfer FT1") == 'Income'


def test_categorize_is_stable():
    results = {categorize("ONLINE SHOPPING ORDER") for _ in range(5)}
    assert results == {'Shopping'}


def test_keywords_must_start_a_word():
    assert categorize("TRANSFER TO CURRENT ACCOUNT") == 'Transfer'
    assert categorize("COFFEE SHOP") == UNCATEGORIZED
    assert categorize("RENTAL DEPOSIT") == 'Housing'
    assert categorize("MONTHLY ACCOUNT FEES") == 'Bank Charges'
