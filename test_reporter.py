#!/usr/bin/env python3
"""Quick tests for the Excel/JSON statement report."""

import sys
import os
import json

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from statement_core.extraction_validator import validate_statement
from statement_core.ocr_engine import parse_statement_text
from statement_core.reporter import build_monthly_summary, generate_statement_report


def test_report_generation(tmp_path, mcb_text):
    statement = parse_statement_text(mcb_text)
    diagnostics = validate_statement(statement)

    report_path = generate_statement_report(statement, diagnostics, output_dir=str(tmp_path))

    assert os.path.exists(report_path)
    assert report_path.endswith('.xlsx')
    assert os.path.basename(report_path).startswith('Statement_MCB_000445566778_')

    with open(report_path.replace('.xlsx', '.json')) as f:
        data = json.load(f)

    assert data['statement']['transaction_count'] == 3
    assert data['statement']['total_credits'] == 2500.00
    assert data['statement']['transactions'][2]['destinatory'] == 'MR JOHN SMITH'
    assert data['diagnostics']['status'] == 'GOOD'
    assert data['monthly_summary'] == [{
        'month': '2024-03',
        'deposits': 2500.00,
        'withdrawals': 500.00,
        'net': 2000.00,
        'transaction_count': 3,
    }]


def test_monthly_summary_spans_months(generic_text):
    text = generic_text.replace("10/04/2024 GROCERY STORE", "02/05/2024 GROCERY STORE")
    monthly = build_monthly_summary(parse_statement_text(text))

    assert list(monthly['month']) == ['2024-04', '2024-05']
    assert list(monthly['deposits']) == [2500.00, 0.0]
    assert list(monthly['withdrawals']) == [200.00, 150.25]


def test_synthetic_statement_report(tmp_path):
    text = "MCB\nAccount Number : 000111222333\nNo movements"
    statement = parse_statement_text(text, size_hint=1000)

    report_path = generate_statement_report(statement, output_dir=str(tmp_path))

    assert os.path.exists(report_path)
    with open(report_path.replace('.xlsx', '.json')) as f:
        data = json.load(f)
    assert data['statement']['is_synthetic'] is True
    assert data['diagnostics'] is None
