"""
OCR Engine Module
Reads bank statements (PDF or text) and runs the parsing pipeline.

Strategy:
1. Try pdfplumber first (fast, works on digital PDFs)
2. If the text is too sparse, fall back to pytesseract OCR, exactly once
3. Identify the bank, route to its dialect parser, assemble the Statement
4. If nothing usable came out, return a synthetic statement instead

The pipeline never raises for recoverable conditions. The only error a caller
sees is StatementProcessingError, for input it cannot read at all.
"""

import io
import os
import random
import logging
from datetime import date
from typing import Callable, List, Optional, Union

import pdfplumber
import pytesseract
from pdf2image import convert_from_bytes, convert_from_path

from statement_core.bank_detection import DEFAULT_ACCOUNT_NUMBER, extract_header_info
from statement_core.bank_parsers import parse_transactions, select_dialect
from statement_core.extraction_validator import validate_statement
from statement_core.fallback_generator import generate_statement, size_hint_parameters
from statement_core.models import (
    BankDialect,
    RawDocument,
    Statement,
    Transaction,
    SOURCE_DIRECT,
    SOURCE_OCR,
)
from statement_core.settings import (
    BALANCE_TOLERANCE,
    DEFAULT_CURRENCY,
    EMPTY_EXTRACTION_BASE_AMOUNT,
    EMPTY_EXTRACTION_TRANSACTION_COUNT,
    FALLBACK_BASE_AMOUNT,
    FALLBACK_TRANSACTION_COUNT,
    MIN_TEXT_LENGTH,
    OCR_DPI,
    OCR_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, bytes]

PDF_MAGIC = b'%PDF'
TEXT_EXTENSIONS = ('.txt',)
TEXT_ENCODINGS = ('utf-8', 'cp1252')


class StatementProcessingError(Exception):
    """The statement could not be processed at all."""


# =============================================================================
# DOCUMENT READING
# =============================================================================

def extract_text_from_pdf(source: Source) -> str:
    """Extract raw text from a PDF (path or bytes) using pdfplumber."""
    handle = io.BytesIO(source) if isinstance(source, bytes) else source
    full_text = []
    with pdfplumber.open(handle) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                full_text.append(text)
    return '\n'.join(full_text)


def extract_text_ocr(source: Source, timeout: int = OCR_TIMEOUT_SECONDS) -> str:
    """
    Extract text using pytesseract OCR (for scanned/image-based PDFs).

    `timeout` bounds page rendering and each page's recognition. Failures
    propagate; the caller decides what a failed OCR pass means.
    """
    if isinstance(source, bytes):
        images = convert_from_bytes(source, dpi=OCR_DPI, timeout=timeout)
    else:
        images = convert_from_path(os.fspath(source), dpi=OCR_DPI, timeout=timeout)
    text_parts = []
    for image in images:
        page_text = pytesseract.image_to_string(image, timeout=timeout)
        if page_text:
            text_parts.append(page_text)
    return '\n'.join(text_parts)


def decode_text_bytes(data: bytes) -> str:
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise StatementProcessingError('Statement text could not be decoded')


def _is_text_source(source: Source) -> bool:
    if isinstance(source, bytes):
        return not source.lstrip().startswith(PDF_MAGIC)
    return os.fspath(source).lower().endswith(TEXT_EXTENSIONS)


def _source_size(source: Source) -> int:
    if isinstance(source, bytes):
        return len(source)
    return os.path.getsize(source)


def _source_name(source) -> str:
    if isinstance(source, bytes):
        return f'<{len(source)} bytes>'
    if isinstance(source, (str, os.PathLike)):
        return os.path.basename(os.fspath(source))
    return repr(source)


def read_document(source: Source) -> RawDocument:
    """
    Direct text of a statement, without OCR.

    Raises StatementProcessingError for missing files, unsupported source
    types and undecodable text. PDF extraction errors are left to the caller.
    """
    if not isinstance(source, (str, os.PathLike, bytes)):
        raise StatementProcessingError(f'Unsupported statement source: {type(source).__name__}')
    if not isinstance(source, bytes) and not os.path.isfile(source):
        raise StatementProcessingError(f'File not found: {source}')

    if _is_text_source(source):
        if isinstance(source, bytes):
            data = source
        else:
            with open(source, 'rb') as f:
                data = f.read()
        return RawDocument(decode_text_bytes(data), SOURCE_DIRECT)

    return RawDocument(extract_text_from_pdf(source), SOURCE_DIRECT)


# =============================================================================
# PIPELINE
# =============================================================================

def _fallback_rng(size_hint: Optional[int]) -> Optional[random.Random]:
    return random.Random(size_hint) if size_hint is not None else None


def _derive_start_balance(transactions: List[Transaction]) -> float:
    first = transactions[0]
    return round(first.balance - first.signed_amount, 2)


def parse_statement_text(text: str,
                         currency: str = DEFAULT_CURRENCY,
                         size_hint: Optional[int] = None,
                         bank_hint: Union[BankDialect, str, None] = None,
                         source: str = SOURCE_DIRECT,
                         today: Optional[date] = None) -> Statement:
    """
    Build a Statement from already-extracted text.

    Zero extracted transactions yield a synthetic statement that keeps the
    header metadata found in the text.
    """
    header = extract_header_info(text, today=today)
    bank_name = header['bank_name']
    currency = header['currency'] or currency
    dialect = select_dialect(bank_name, bank_hint)
    logger.info("Bank identified: %s, dialect: %s", bank_name, dialect.value)

    transactions, running = parse_transactions(text, dialect, header['opening_balance'])

    if not transactions:
        logger.warning("No transactions extracted for %s, generating fallback statement", bank_name)
        statement = generate_statement(
            base_amount=EMPTY_EXTRACTION_BASE_AMOUNT,
            transaction_count=EMPTY_EXTRACTION_TRANSACTION_COUNT,
            period_start=header['period_start'],
            period_end=header['period_end'],
            opening_balance=header['opening_balance'],
            currency=currency,
            bank_name=bank_name,
            account_number=header['account_number'],
            account_name=header['account_name'],
            rng=_fallback_rng(size_hint),
            reason='no transactions extracted',
        )
        statement.dialect = dialect
        return statement

    period_start, period_end = header['period_start'], header['period_end']
    if not header['period_found']:
        dates = [t.date for t in transactions]
        period_start, period_end = min(dates), max(dates)

    start_balance = header['opening_balance']
    if start_balance is None:
        start_balance = _derive_start_balance(transactions)
    end_balance = header['closing_balance']
    if end_balance is None:
        end_balance = transactions[-1].balance

    statement = Statement(
        bank_name=bank_name,
        account_number=header['account_number'],
        account_name=header['account_name'],
        period_start=period_start,
        period_end=period_end,
        start_balance=round(start_balance, 2),
        end_balance=round(end_balance, 2),
        currency=currency,
        transactions=transactions,
        dialect=dialect,
        source=source,
    )

    if running.mismatches:
        statement.warnings.append(
            f'{running.mismatches} running balance mismatch(es); statement balances kept'
        )
    if abs(statement.balance_divergence) > BALANCE_TOLERANCE:
        message = (f'Opening/closing balances diverge from credits - debits by '
                   f'{statement.balance_divergence:,.2f}')
        logger.warning(message)
        statement.warnings.append(message)

    logger.info("Parsed %d transactions (%d credits, %d debits)",
                len(transactions), statement.credit_count, statement.debit_count)
    return statement


def _unreadable_statement(reason: str, currency: str, size_hint: Optional[int],
                          text: str = '', today: Optional[date] = None) -> Statement:
    """Synthetic statement for a document with no usable text; keeps any header found."""
    if size_hint is not None:
        base_amount, count = size_hint_parameters(size_hint)
    else:
        base_amount, count = FALLBACK_BASE_AMOUNT, FALLBACK_TRANSACTION_COUNT

    header = extract_header_info(text, today=today) if text else None
    kwargs = {}
    if header:
        kwargs['currency'] = header['currency'] or currency
        if header['period_found']:
            kwargs['period_start'] = header['period_start']
            kwargs['period_end'] = header['period_end']
        if header['account_number'] != DEFAULT_ACCOUNT_NUMBER:
            kwargs['account_number'] = header['account_number']
    else:
        kwargs['currency'] = currency

    return generate_statement(
        base_amount=base_amount,
        transaction_count=count,
        rng=_fallback_rng(size_hint),
        reason=reason,
        **kwargs,
    )


def process_bank_statement(source: Source,
                           currency: str = DEFAULT_CURRENCY,
                           ocr: Optional[Callable[[Source], str]] = None,
                           size_hint: Optional[int] = None,
                           bank_hint: Union[BankDialect, str, None] = None,
                           today: Optional[date] = None) -> Statement:
    """
    Main function to process a complete bank statement.

    `source` is a file path or the raw bytes of a PDF or text statement.
    `ocr` replaces the OCR collaborator (defaults to pytesseract).
    Always returns exactly one Statement.
    """
    ocr = ocr or extract_text_ocr
    try:
        return _process(source, currency, ocr, size_hint, bank_hint, today)
    except StatementProcessingError:
        raise
    except Exception as e:
        logger.exception("Unexpected error processing %s", _source_name(source))
        raise StatementProcessingError(f'Error processing bank statement: {e}') from e


def _process(source, currency, ocr, size_hint, bank_hint, today) -> Statement:
    name = _source_name(source)
    logger.info("Processing %s", name)

    try:
        document = read_document(source)
    except StatementProcessingError:
        raise
    except Exception as e:
        logger.warning("Direct text extraction failed for %s: %s", name, e)
        document = RawDocument('', SOURCE_DIRECT)

    if size_hint is None:
        size_hint = _source_size(source)

    if document.density < MIN_TEXT_LENGTH and not _is_text_source(source):
        logger.info("Extracted text too sparse (%d chars), falling back to OCR", document.density)
        try:
            ocr_text = ocr(source)
        except Exception as e:
            logger.warning("OCR failed for %s: %s", name, e)
            ocr_text = ''
        if ocr_text and len(ocr_text.strip()) >= MIN_TEXT_LENGTH:
            document = RawDocument(ocr_text, SOURCE_OCR)

    if document.density < MIN_TEXT_LENGTH:
        return _unreadable_statement(
            'document text could not be extracted', currency, size_hint, document.text, today,
        )

    statement = parse_statement_text(
        document.text,
        currency=currency,
        size_hint=size_hint,
        bank_hint=bank_hint,
        source=document.source,
        today=today,
    )

    if not statement.is_synthetic:
        diagnostics = validate_statement(statement)
        logger.info("Extraction confidence for %s: %s (%s)", name,
                    diagnostics['confidence_score'], diagnostics['status'])
        for issue in diagnostics['issues_found']:
            logger.warning("%s: %s", name, issue)
    return statement
