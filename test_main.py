#!/usr/bin/env python3
"""Tests for the batch runner."""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import main


def test_check_for_new_files(tmp_path):
    for name in ['b.pdf', 'a.TXT', 'notes.docx']:
        (tmp_path / name).write_bytes(b'')

    found = main.check_for_new_files(str(tmp_path))

    assert [os.path.basename(p) for p in found] == ['a.TXT', 'b.pdf']
    assert main.check_for_new_files(str(tmp_path / 'missing')) == []


def test_run_pipeline_writes_reports(tmp_path, generic_text):
    statement_path = tmp_path / 'april.txt'
    statement_path.write_text(generic_text)
    output_dir = tmp_path / 'reports'

    report_path = main.run_pipeline(str(statement_path), output_dir=str(output_dir))

    assert os.path.exists(report_path)
    assert os.path.exists(report_path.replace('.xlsx', '.json'))


def test_main_counts_failures(tmp_path, monkeypatch, generic_text):
    good = tmp_path / 'good.txt'
    good.write_text(generic_text)
    monkeypatch.setattr(main, 'OUTPUT_REPORTS_DIR', str(tmp_path / 'reports'))
    monkeypatch.setattr(main, 'configure_logging', lambda: None)

    failures = main.main([str(good), str(tmp_path / 'missing.pdf')])

    assert failures == 1
