#!/usr/bin/env python3
"""Tests for statement diagnostics."""

import sys
import os
import random
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from statement_core.extraction_validator import validate_statement
from statement_core.fallback_generator import generate_statement
from statement_core.models import Direction, Statement, Transaction
from statement_core.ocr_engine import parse_statement_text


def _statement(transactions, start_balance=1000.0, end_balance=None):
    if end_balance is None:
        end_balance = transactions[-1].balance if transactions else start_balance
    return Statement(
        bank_name='HSBC',
        account_number='987654321',
        period_start=date(2024, 4, 1),
        period_end=date(2024, 4, 30),
        start_balance=start_balance,
        end_balance=end_balance,
        currency='MUR',
        transactions=transactions,
    )


def test_clean_statement_is_good(mcb_text):
    result = validate_statement(parse_statement_text(mcb_text))

    assert result['status'] == 'GOOD'
    assert result['confidence_score'] == 100
    assert result['issues_found'] == []
    assert result['balance_divergence'] == 0
    assert any('Balance reconciliation PASSED' in c for c in result['checks_passed'])


def test_balance_mismatch_is_reported():
    transactions = [
        Transaction(date(2024, 4, 2), 'SALARY', 500.0, Direction.CREDIT, 1500.0),
        Transaction(date(2024, 4, 3), 'SHOP', 100.0, Direction.DEBIT, 1400.0),
    ]
    result = validate_statement(_statement(transactions, end_balance=2000.0))

    assert any('Balance mismatch' in i for i in result['issues_found'])
    assert result['balance_divergence'] == 600.0
    assert result['confidence_score'] <= 80


def test_running_balance_break_is_reported():
    transactions = [
        Transaction(date(2024, 4, 2), 'SALARY', 500.0, Direction.CREDIT, 1500.0),
        Transaction(date(2024, 4, 3), 'SHOP', 100.0, Direction.DEBIT, 1450.0),
    ]
    result = validate_statement(_statement(transactions, end_balance=1400.0))

    assert any('Running balance chain' in i for i in result['issues_found'])


def test_dates_outside_period_are_reported():
    transactions = [
        Transaction(date(2024, 6, 20), 'SALARY PAYMENT', 500.0, Direction.CREDIT, 1500.0),
        Transaction(date(2024, 4, 3), 'SHOP PURCHASE', 100.0, Direction.DEBIT, 1400.0),
    ]
    result = validate_statement(_statement(transactions))

    assert any('outside statement period' in i for i in result['issues_found'])


def test_duplicates_are_flagged():
    txn = Transaction(date(2024, 4, 3), 'CARD PURCHASE SHOP', 100.0, Direction.DEBIT, 900.0)
    transactions = [txn, Transaction(txn.date, txn.description, txn.amount, txn.direction, txn.balance)]
    result = validate_statement(_statement(transactions, end_balance=900.0))

    assert len(result['potential_duplicates']) == 1


def test_synthetic_statement_is_poor():
    statement = generate_statement(transaction_count=10, rng=random.Random(5), reason='unreadable')
    result = validate_statement(statement)

    assert result['status'] == 'POOR'
    assert any('synthetic' in i for i in result['issues_found'])


def test_empty_statement():
    result = validate_statement(_statement([]))

    assert result['status'] != 'GOOD'
    assert any('No transactions' in i for i in result['issues_found'])
