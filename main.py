"""
Bank Statement Parser
Batch script: parses every statement in the input directory (or the paths
given on the command line) and writes an Excel + JSON report for each.
"""

import os
import sys
import logging
from datetime import datetime
from typing import List

from statement_core.ocr_engine import StatementProcessingError, process_bank_statement
from statement_core.extraction_validator import validate_statement
from statement_core.reporter import generate_statement_report
from statement_core.settings import (
    ALLOWED_EXTENSIONS,
    DEFAULT_CURRENCY,
    INPUT_DIR,
    OUTPUT_REPORTS_DIR,
    configure_logging,
)

logger = logging.getLogger('statement_core.main')


def check_for_new_files(directory: str) -> List[str]:
    """
    Statement files (PDF or TXT) in `directory`, sorted by name.
    """
    statement_files = []
    if os.path.exists(directory):
        for filename in sorted(os.listdir(directory)):
            if filename.rsplit('.', 1)[-1].lower() in ALLOWED_EXTENSIONS:
                statement_files.append(os.path.join(directory, filename))
    return statement_files


def run_pipeline(path: str, currency: str = DEFAULT_CURRENCY, output_dir: str = OUTPUT_REPORTS_DIR) -> str:
    """
    Parse one statement and write its reports.

    Returns:
        Path to the generated workbook.
    """
    print(f"\n{'='*60}")
    print(f"Processing: {os.path.basename(path)}")
    print(f"{'='*60}\n")

    print("Step 1: Extraction Started...")
    statement = process_bank_statement(path, currency=currency)
    print(f"  - Bank: {statement.bank_name} ({statement.dialect.value})")
    print(f"  - Account: {statement.account_number}")
    print(f"  - Period: {statement.period_start} to {statement.period_end}")
    print(f"  - Transactions: {len(statement.transactions)} "
          f"({statement.credit_count} credits, {statement.debit_count} debits)")
    if statement.is_synthetic:
        print("  [WARNING] No transactions could be extracted, synthetic statement generated")
    print("  [COMPLETE] Extraction finished\n")

    print("Step 2: Validation Started...")
    diagnostics = validate_statement(statement)
    print(f"  - Confidence: {diagnostics['confidence_score']} ({diagnostics['status']})")
    for issue in diagnostics['issues_found']:
        print(f"  - {issue}")
    print("  [COMPLETE] Validation finished\n")

    print("Step 3: Report Generation Started...")
    report_path = generate_statement_report(statement, diagnostics, output_dir=output_dir)
    print(f"  [COMPLETE] Report written to {report_path}\n")

    return report_path


def main(argv: List[str] = None) -> int:
    """
    Main entry point. Returns the number of statements that failed.
    """
    configure_logging()
    argv = sys.argv[1:] if argv is None else argv

    print("\n" + "="*60)
    print("   BANK STATEMENT PARSER")
    print("="*60)
    print(f"\nStarted at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    if argv:
        statement_files = list(argv)
    else:
        print(f"\nChecking {INPUT_DIR}/ for bank statements...")
        statement_files = check_for_new_files(INPUT_DIR)

    if not statement_files:
        print(f"No statement files found in {INPUT_DIR}/")
        print(f"Place PDF or TXT statements in the {INPUT_DIR}/ folder and run again.")
        return 0

    print(f"Found {len(statement_files)} file(s) to process:")
    for path in statement_files:
        print(f"  - {os.path.basename(path)}")

    reports_generated = []
    failures = 0
    for path in statement_files:
        try:
            reports_generated.append(run_pipeline(path, output_dir=OUTPUT_REPORTS_DIR))
        except StatementProcessingError as e:
            failures += 1
            logger.error("Failed to process %s: %s", path, e)
            print(f"ERROR processing {path}: {e}")

    print("\n" + "="*60)
    print("   PROCESSING COMPLETE")
    print("="*60)
    print(f"\nFiles processed: {len(statement_files)}")
    print(f"Reports generated: {len(reports_generated)}")
    if reports_generated:
        print("\nGenerated reports:")
        for report in reports_generated:
            print(f"  - {report}")
    print(f"\nCompleted at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    return failures


if __name__ == "__main__":
    sys.exit(1 if main() else 0)
