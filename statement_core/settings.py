"""
Settings Module
Runtime configuration for the statement parsing engine.

Every constant can be overridden with an environment variable of the same
name. Values are read once, at import.
"""

import os
import logging


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


# Text density
MIN_TEXT_LENGTH = _env_int('MIN_TEXT_LENGTH', 100)
MIN_LINE_LENGTH = _env_int('MIN_LINE_LENGTH', 8)
MCB_MIN_LINE_LENGTH = _env_int('MCB_MIN_LINE_LENGTH', 1)

# Statement defaults
DEFAULT_CURRENCY = os.environ.get('DEFAULT_CURRENCY', 'MUR')
DEFAULT_PERIOD_DAYS = 30
BALANCE_TOLERANCE = _env_float('BALANCE_TOLERANCE', 0.01)

# OCR escalation
OCR_TIMEOUT_SECONDS = _env_int('OCR_TIMEOUT_SECONDS', 120)
OCR_DPI = _env_int('OCR_DPI', 300)

# Fallback generator sizing
FALLBACK_BASE_AMOUNT = _env_int('FALLBACK_BASE_AMOUNT', 10000)
FALLBACK_TRANSACTION_COUNT = _env_int('FALLBACK_TRANSACTION_COUNT', 20)
EMPTY_EXTRACTION_BASE_AMOUNT = _env_int('EMPTY_EXTRACTION_BASE_AMOUNT', 20000)
EMPTY_EXTRACTION_TRANSACTION_COUNT = _env_int('EMPTY_EXTRACTION_TRANSACTION_COUNT', 10)

# Paths
LOG_DIR = os.environ.get('LOG_DIR', 'logs')
LOG_FILE = os.path.join(LOG_DIR, 'statement_parser.log')
INPUT_DIR = os.environ.get('INPUT_DIR', 'input_statements')
OUTPUT_REPORTS_DIR = os.environ.get('OUTPUT_REPORTS_DIR', 'output_reports')
UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', 'uploads')

# Web
SECRET_KEY = os.environ.get('SECRET_KEY', 'statement-parser-dev-key')
MAX_CONTENT_LENGTH = _env_int('MAX_CONTENT_LENGTH', 10 * 1024 * 1024)
ALLOWED_EXTENSIONS = {'pdf', 'txt'}


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach the file handler to the package logger (once)."""
    logger = logging.getLogger('statement_core')
    if not logger.handlers:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = logging.FileHandler(LOG_FILE, mode='a')
        file_handler.setFormatter(logging.Formatter(
            '[%(asctime)s] %(levelname)s %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        ))
        logger.addHandler(file_handler)
        logger.setLevel(level)
    return logger
