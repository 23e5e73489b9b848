from collections import defaultdict
from datetime import timedelta
from difflib import SequenceMatcher
from typing import Dict, List, Tuple

from statement_core.models import Statement, Transaction
from statement_core.settings import BALANCE_TOLERANCE


def validate_statement(statement: Statement, tolerance: float = BALANCE_TOLERANCE) -> Dict:
    confidence_score = 100
    checks_passed = []
    issues_found = []
    potential_duplicates = []

    transactions = statement.transactions
    currency = statement.currency

    checks_passed.append(f"Bank detected: {statement.bank_name} ({statement.dialect.value} dialect)")
    checks_passed.append(f"Credits found: {statement.credit_count} ({currency} {statement.total_credits:,.2f})")
    checks_passed.append(f"Debits found: {statement.debit_count} ({currency} {statement.total_debits:,.2f})")
    checks_passed.append(f"Total transactions extracted: {len(transactions)}")

    if statement.is_synthetic:
        issues_found.append("Statement is synthetic: no transactions could be extracted from the document")
        confidence_score -= 60

    confidence_score, checks_passed, issues_found = _check_balance_reconciliation(
        confidence_score, checks_passed, issues_found, statement, tolerance
    )

    confidence_score, checks_passed, issues_found = _check_running_balance_chain(
        confidence_score, checks_passed, issues_found, statement, tolerance
    )

    confidence_score, checks_passed, issues_found = _check_credit_debit_sanity(
        confidence_score, checks_passed, issues_found, statement
    )

    confidence_score, checks_passed, issues_found = _check_description_quality(
        confidence_score, checks_passed, issues_found, transactions
    )

    confidence_score, potential_duplicates, checks_passed, issues_found = _check_duplicates(
        confidence_score, checks_passed, issues_found, transactions
    )

    confidence_score, checks_passed, issues_found = _check_date_sanity(
        confidence_score, checks_passed, issues_found, statement
    )

    confidence_score = max(0, confidence_score)

    if confidence_score >= 85:
        status = 'GOOD'
    elif confidence_score >= 70:
        status = 'NEEDS_REVIEW'
    else:
        status = 'POOR'

    if status == 'GOOD':
        recommendation = 'Extraction quality is high. Statement data can be used as is.'
    elif status == 'NEEDS_REVIEW':
        recommendation = 'Review flagged items against the source statement.'
    else:
        recommendation = 'Extraction quality is low. Manual review of the source document is strongly recommended.'

    return {
        'confidence_score': confidence_score,
        'status': status,
        'checks_passed': checks_passed,
        'issues_found': issues_found,
        'potential_duplicates': potential_duplicates,
        'balance_divergence': statement.balance_divergence,
        'recommendation': recommendation,
    }


def _check_balance_reconciliation(score, passed, issues, statement: Statement, tolerance):
    divergence = statement.balance_divergence
    if abs(divergence) <= tolerance:
        passed.append(
            f"Balance reconciliation PASSED: Opening {statement.start_balance:,.2f} "
            f"+ Credits {statement.total_credits:,.2f} - Debits {statement.total_debits:,.2f} "
            f"= {statement.end_balance:,.2f}"
        )
    else:
        issues.append(
            f"Balance mismatch: opening {statement.start_balance:,.2f} to closing "
            f"{statement.end_balance:,.2f} differs from credits - debits by {divergence:,.2f}"
        )
        score -= 20

    return score, passed, issues


def _check_running_balance_chain(score, passed, issues, statement: Statement, tolerance):
    """Each balance should equal the previous one moved by the transaction."""
    if not statement.transactions:
        return score, passed, issues

    breaks = []
    previous = statement.start_balance
    for i, txn in enumerate(statement.transactions):
        expected = round(previous + txn.signed_amount, 2)
        if abs(expected - txn.balance) > tolerance:
            breaks.append(i)
        previous = txn.balance

    if not breaks:
        passed.append(f"Running balance chain: all {len(statement.transactions)} balances consistent")
    else:
        first = statement.transactions[breaks[0]]
        issues.append(
            f"Running balance chain: {len(breaks)} break(s), first on {first.date.isoformat()} "
            f"({first.description[:40]!r})"
        )
        score -= min(len(breaks) * 2, 15)

    return score, passed, issues


def _check_credit_debit_sanity(score, passed, issues, statement: Statement):
    transactions = statement.transactions
    if not transactions:
        issues.append("No transactions extracted - likely a parser failure")
        score -= 25
        return score, passed, issues

    credits, debits = statement.credit_count, statement.debit_count
    if credits == 0 and debits > 1:
        issues.append(f"ALL {debits} transactions are debits with ZERO credits - check direction inference")
        score -= 10
    elif debits == 0 and credits > 1:
        issues.append(f"ALL {credits} transactions are credits with ZERO debits - check direction inference")
        score -= 10
    else:
        ratio = credits / len(transactions) * 100
        passed.append(f"Credit/Debit mix: {ratio:.0f}% credits, {100 - ratio:.0f}% debits")

    return score, passed, issues


def _check_description_quality(score, passed, issues, transactions: List[Transaction]):
    if not transactions:
        return score, passed, issues

    bad_count = 0
    for t in transactions:
        desc = (t.description or '').strip()
        if not desc or len(desc) < 3 or not any(ch.isalpha() for ch in desc):
            bad_count += 1

    bad_pct = bad_count / len(transactions) * 100
    if bad_pct <= 20:
        passed.append(f"Description quality: {100 - bad_pct:.0f}% have meaningful descriptions")
    else:
        issues.append(
            f"Description quality: {bad_count}/{len(transactions)} ({bad_pct:.0f}%) have empty or numeric-only descriptions"
        )
        score -= 15

    return score, passed, issues


def _check_duplicates(score, passed, issues, transactions: List[Transaction]):
    potential_dupes = []

    if not transactions:
        return score, potential_dupes, passed, issues

    groups: Dict[Tuple, List[Transaction]] = defaultdict(list)
    for t in transactions:
        groups[(t.date.isoformat(), round(t.amount, 2), t.direction)].append(t)

    for (day, amount, _), group in groups.items():
        if len(group) < 2:
            continue
        descs = [t.description[:80] for t in group]
        for i in range(len(descs)):
            for j in range(i + 1, len(descs)):
                similarity = SequenceMatcher(None, descs[i].lower(), descs[j].lower()).ratio()
                # identical balances mean the same line was read twice
                if similarity > 0.75 and group[i].balance == group[j].balance:
                    potential_dupes.append({
                        'date': day,
                        'amount': amount,
                        'descriptions': [descs[i], descs[j]],
                        'similarity': round(similarity * 100),
                    })

    if not potential_dupes:
        passed.append("Duplicate detection: No suspicious duplicates found")
    else:
        issues.append(f"Duplicate detection: {len(potential_dupes)} potential duplicate pair(s) found for review")
        score -= min(len(potential_dupes) * 5, 15)

    return score, potential_dupes, passed, issues


def _check_date_sanity(score, passed, issues, statement: Statement):
    transactions = statement.transactions
    if not transactions:
        return score, passed, issues

    dates = [t.date for t in transactions]
    margin = timedelta(days=5)
    out_of_range = sum(
        1 for d in dates
        if d < statement.period_start - margin or d > statement.period_end + margin
    )

    if out_of_range:
        pct = out_of_range / len(dates) * 100
        issues.append(
            f"Date sanity: {out_of_range} transaction(s) ({pct:.0f}%) fall outside statement period "
            f"({statement.period_start.isoformat()} to {statement.period_end.isoformat()})"
        )
        score -= 10
    else:
        passed.append(
            f"Date sanity: All dates valid, range {min(dates).isoformat()} to {max(dates).isoformat()}"
        )

    return score, passed, issues

