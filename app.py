"""
Bank Statement Parser - Web Application
Flask JSON API for uploading and parsing bank statements.
"""

import os
import logging
from datetime import datetime
from flask import Flask, request, jsonify
from werkzeug.utils import secure_filename

from statement_core.ocr_engine import StatementProcessingError, process_bank_statement
from statement_core.settings import (
    ALLOWED_EXTENSIONS,
    DEFAULT_CURRENCY,
    MAX_CONTENT_LENGTH,
    SECRET_KEY,
    UPLOAD_FOLDER,
    configure_logging,
)

configure_logging()
logger = logging.getLogger('statement_core.app')

app = Flask(__name__)
app.secret_key = SECRET_KEY

app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

os.makedirs(UPLOAD_FOLDER, exist_ok=True)


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


@app.route('/api/bank-statements/upload', methods=['POST'])
def upload_statement():
    """Parse an uploaded statement and return it with its transactions."""
    file = request.files.get('statement')
    if file is None or not file.filename:
        return jsonify({'message': 'No file uploaded'}), 400

    if not allowed_file(file.filename):
        return jsonify({'message': 'Unsupported file type, upload a PDF or TXT statement'}), 400

    currency = request.form.get('currency') or DEFAULT_CURRENCY
    filename = datetime.now().strftime('%Y%m%d_%H%M%S_') + secure_filename(file.filename)
    filepath = os.path.join(app.config['UPLOAD_FOLDER'], filename)
    file.save(filepath)

    try:
        statement = process_bank_statement(filepath, currency=currency)
    except StatementProcessingError as e:
        logger.error("Upload %s failed: %s", filename, e)
        return jsonify({'message': 'Error processing bank statement', 'error': str(e)}), 500
    finally:
        if os.path.exists(filepath):
            os.remove(filepath)

    return jsonify({
        'message': 'Bank statement processed successfully',
        'statement': statement.to_dict(include_transactions=False),
        'transactions': [t.to_dict() for t in statement.transactions],
    }), 201


@app.route('/api/status')
def api_status():
    """API endpoint for service status."""
    return jsonify({
        'status': 'ready',
        'allowed_extensions': sorted(ALLOWED_EXTENSIONS),
        'default_currency': DEFAULT_CURRENCY,
    })


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000, debug=True)
