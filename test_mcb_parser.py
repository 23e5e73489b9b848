#!/usr/bin/env python3
"""Tests for the MCB structured and raw statement parsers."""

import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from statement_core.bank_parsers import (
    PARSERS,
    extract_mcb_transactions,
    is_mcb_anchor,
    parse_transactions,
    reconstruct_mcb,
    reconstruct_mcb_raw,
    select_dialect,
)
from statement_core.direction import RunningBalance
from statement_core.models import BankDialect, Direction


def test_concatenated_anchor_without_detail():
    transactions = extract_mcb_transactions("01/03/202401/03/2024100.005000.00")

    assert len(transactions) == 1
    txn = transactions[0]
    assert txn.date == date(2024, 3, 1)
    assert txn.amount == 100.00
    assert txn.direction == Direction.DEBIT
    assert txn.balance == 5000.00
    assert txn.description == ''


def test_credit_column_is_authoritative_over_balance_movement():
    # balance falls from 9,000 to 7,500 but the credit column is populated
    transactions, running = reconstruct_mcb(
        "05/03/2024 05/03/2024 - 2,500.00 7,500.00",
        RunningBalance(9000.0),
    )

    assert len(transactions) == 1
    assert transactions[0].direction == Direction.CREDIT
    assert transactions[0].amount == 2500.00
    assert transactions[0].balance == 7500.00
    assert running.mismatches == 1


def test_single_column_uses_balance_delta():
    transactions = extract_mcb_transactions(
        "05/03/2024 05/03/2024 2,500.00 7,500.00",
        opening_balance=5000.0,
    )
    assert transactions[0].direction == Direction.CREDIT

    transactions = extract_mcb_transactions(
        "05/03/2024 05/03/2024 2,500.00 2,500.00",
        opening_balance=5000.0,
    )
    assert transactions[0].direction == Direction.DEBIT


def test_contradictory_columns_debit_wins():
    transactions = extract_mcb_transactions("01/03/202401/03/20241,500.002,000.006,500.00")

    assert len(transactions) == 1
    assert transactions[0].direction == Direction.DEBIT
    assert transactions[0].amount == 2000.00


def test_continuation_lines_are_absorbed():
    detail_lines = ["POS PURCHASE", "SUPERMARKET PORT LOUIS", "CARD 1234"]
    text = "\n".join(
        ["01/03/2024 01/03/2024 45.50 954.50"]
        + detail_lines
        + ["02/03/2024 02/03/2024 - 100.00 1,054.50"]
    )

    transactions = extract_mcb_transactions(text, opening_balance=1000.0)

    assert len(transactions) == 2
    assert transactions[0].description == "POS PURCHASE SUPERMARKET PORT LOUIS CARD 1234"
    assert transactions[0].category == 'Groceries'
    assert transactions[1].description == ''


def test_absorption_stops_at_sentinels():
    text = "\n".join([
        "01/03/2024 01/03/2024 45.50 954.50",
        "CARD PAYMENT",
        "Page : 1 of 2",
        "Balance c/f 954.50",
        "Continued text on next page",
    ])
    transactions = extract_mcb_transactions(text, opening_balance=1000.0)

    assert len(transactions) == 1
    assert transactions[0].description == "CARD PAYMENT"


def test_balance_only_anchors_are_skipped():
    text = "\n".join([
        "31/03/2024 31/03/2024 5,000.00",
        "31/03/2024 31/03/2024 - - 5,000.00",
    ])
    assert extract_mcb_transactions(text) == []


def test_reference_and_counterparty_split(mcb_text):
    transactions = extract_mcb_transactions(mcb_text, opening_balance=5000.0)

    assert len(transactions) == 3

    cheque, transfer, rent = transactions
    assert cheque.reference == "Cash Cheque 00012345"
    assert cheque.counterparty is None

    assert transfer.direction == Direction.CREDIT
    assert transfer.reference == "Inward Transfer FT24062XYZ1"
    assert transfer.description == "Inward Transfer FT24062XYZ1\\BPR"
    assert transfer.counterparty == "ACME TRADING CO LTD"
    assert transfer.category == 'Transfer'

    assert rent.direction == Direction.DEBIT
    assert rent.amount == 400.00
    assert rent.description == "MONTHLY RENT PAYMENT JuicePro Transfer TT99887"
    assert rent.counterparty == "MR JOHN SMITH"
    assert rent.category == 'Housing'


def test_transactions_keep_line_order():
    text = "\n".join([
        "10/03/2024 10/03/2024 10.00 990.00",
        "01/03/2024 01/03/2024 10.00 980.00",
    ])
    transactions = extract_mcb_transactions(text, opening_balance=1000.0)
    assert [t.date.day for t in transactions] == [10, 1]


def test_anchor_pattern():
    assert is_mcb_anchor("01/03/202401/03/2024100.005000.00")
    assert is_mcb_anchor("01/03/2024 01/03/2024 - 100.00 5,000.00")
    assert not is_mcb_anchor("Statement from 01/03/2024 to 31/03/2024")
    assert not is_mcb_anchor("01/03/2024 SALARY 100.00 5,000.00")


def test_raw_dialect_uses_balance_delta_and_reseeds():
    text = "\n".join([
        "Balance : 1,000.00",
        "01/03/2024 SALARY MARCH 500.00 1,500.00",
        "02/03/2024 SHOP 200.00 1,300.00",
        "Balance : 3,000.00",
        "03/03/2024 TRANSFER IN 100.00 3,100.00",
    ])
    transactions, running = reconstruct_mcb_raw(text)

    assert [t.direction for t in transactions] == [Direction.CREDIT, Direction.DEBIT, Direction.CREDIT]
    assert [t.balance for t in transactions] == [1500.00, 1300.00, 3100.00]
    assert transactions[0].description == "SALARY MARCH"
    assert running.value == 3100.00
    assert running.mismatches == 0


def test_router_covers_every_dialect():
    assert set(PARSERS) == set(BankDialect)


def test_select_dialect():
    assert select_dialect('MCB') == BankDialect.MCB
    assert select_dialect('HSBC') == BankDialect.GENERIC
    assert select_dialect('MCB', 'mcb_raw') == BankDialect.MCB_RAW
    assert select_dialect('Banking Institution', BankDialect.MCB) == BankDialect.MCB


def test_parse_transactions_threads_running_balance(mcb_text):
    transactions, running = parse_transactions(mcb_text, BankDialect.MCB, 5000.0)

    assert len(transactions) == 3
    assert running.value == 7000.00
    assert running.mismatches == 0


def test_overdrawn_balance_keeps_its_sign():
    text = "\n".join([
        "01/03/2024 01/03/2024 600.00 -100.00",
        "ATM WITHDRAWAL",
        "02/03/2024 02/03/2024 - 300.00 200.00",
        "SALARY MARCH",
    ])
    transactions, running = reconstruct_mcb(text, RunningBalance(500.0))

    assert len(transactions) == 2
    atm, salary = transactions
    assert atm.direction == Direction.DEBIT
    assert atm.amount == 600.00
    assert atm.balance == -100.00
    assert salary.direction == Direction.CREDIT
    assert salary.balance == 200.00
    assert running.mismatches == 0


def test_trailing_minus_balance_is_negative():
    transactions = extract_mcb_transactions("01/03/2024 01/03/2024 600.00 100.00-", opening_balance=500.0)
    assert transactions[0].balance == -100.00
    assert transactions[0].direction == Direction.DEBIT


def test_raw_overdrawn_balance_keeps_its_sign():
    transactions, running = reconstruct_mcb_raw(
        "01/03/2024 CARD PAYMENT 600.00 -100.00",
        RunningBalance(500.0),
    )
    assert transactions[0].direction == Direction.DEBIT
    assert transactions[0].balance == -100.00
    assert transactions[0].description == 'CARD PAYMENT'
    assert running.mismatches == 0
