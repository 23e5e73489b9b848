"""
Reporter Module
Generates Excel statement reports with multiple tabs using XlsxWriter, plus a
JSON dump of the same statement.
"""

import xlsxwriter
import json
import re
import pandas as pd
from typing import Dict, Optional
from datetime import date, datetime
import os

from statement_core.models import Direction, Statement
from statement_core.settings import OUTPUT_REPORTS_DIR


def create_workbook(output_path: str) -> xlsxwriter.Workbook:
    """
    Create a new Excel workbook for the report.
    """
    workbook = xlsxwriter.Workbook(output_path)
    return workbook


def get_formats(workbook: xlsxwriter.Workbook, currency: str = '') -> Dict:
    """
    Create standard formats for the workbook. Money cells carry the statement
    currency code.
    """
    money = f'"{currency}" #,##0.00' if currency else '#,##0.00'
    return {
        'title': workbook.add_format({
            'bold': True, 'font_size': 16, 'font_color': '#1e3a5f',
            'bottom': 2, 'bottom_color': '#1e3a5f'
        }),
        'header': workbook.add_format({
            'bold': True, 'bg_color': '#1e3a5f', 'font_color': 'white',
            'border': 1, 'text_wrap': True, 'valign': 'vcenter'
        }),
        'subheader': workbook.add_format({
            'bold': True, 'bg_color': '#e8f0fe', 'border': 1
        }),
        'currency': workbook.add_format({
            'num_format': money, 'border': 1
        }),
        'currency_negative': workbook.add_format({
            'num_format': money, 'border': 1, 'font_color': 'red'
        }),
        'number': workbook.add_format({
            'num_format': '#,##0', 'border': 1
        }),
        'date': workbook.add_format({
            'num_format': 'yyyy-mm-dd', 'border': 1
        }),
        'text': workbook.add_format({
            'border': 1, 'text_wrap': True
        }),
        'good': workbook.add_format({
            'bg_color': '#c6efce', 'font_color': '#006100', 'border': 1
        }),
        'warning': workbook.add_format({
            'bg_color': '#ffeb9c', 'font_color': '#9c5700', 'border': 1
        }),
        'bad': workbook.add_format({
            'bg_color': '#ffc7ce', 'font_color': '#9c0006', 'border': 1
        }),
        'label': workbook.add_format({
            'bold': True, 'bg_color': '#f0f0f0', 'border': 1
        }),
    }


def add_summary_sheet(workbook: xlsxwriter.Workbook, statement: Statement,
                      diagnostics: Optional[Dict], formats: Dict) -> None:
    """
    Add statement summary sheet to workbook.
    """
    sheet = workbook.add_worksheet('Summary')
    sheet.set_column('A:A', 25)
    sheet.set_column('B:B', 30)
    sheet.set_column('C:D', 20)

    sheet.write('A1', 'BANK STATEMENT SUMMARY', formats['title'])
    sheet.write('A2', f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}", formats['text'])

    row = 4
    sheet.merge_range(row, 0, row, 3, 'ACCOUNT INFORMATION', formats['subheader'])
    row += 1

    fields = [
        ('Bank', statement.bank_name),
        ('Account Number', statement.account_number),
        ('Account Name', statement.account_name or 'N/A'),
        ('Statement Period', f"{statement.period_start.isoformat()} to {statement.period_end.isoformat()}"),
        ('Currency', statement.currency),
        ('Dialect', statement.dialect.value),
        ('Text Source', statement.source),
    ]
    for label, value in fields:
        sheet.write(row, 0, label, formats['label'])
        sheet.write(row, 1, str(value), formats['text'])
        row += 1

    if statement.is_synthetic:
        sheet.write(row, 0, 'Synthetic', formats['label'])
        sheet.write(row, 1, 'YES - no transactions could be extracted', formats['bad'])
        row += 1

    row += 1
    sheet.merge_range(row, 0, row, 3, 'BALANCES', formats['subheader'])
    row += 1

    balance_fields = [
        ('Opening Balance', statement.start_balance),
        ('Total Credits', statement.total_credits),
        ('Total Debits', statement.total_debits),
        ('Closing Balance', statement.end_balance),
        ('Divergence', statement.balance_divergence),
    ]
    for label, value in balance_fields:
        sheet.write(row, 0, label, formats['label'])
        value_format = formats['currency_negative'] if value < 0 else formats['currency']
        sheet.write(row, 1, value, value_format)
        row += 1

    count_fields = [
        ('Credit Count', statement.credit_count),
        ('Debit Count', statement.debit_count),
        ('Transaction Count', len(statement.transactions)),
    ]
    for label, value in count_fields:
        sheet.write(row, 0, label, formats['label'])
        sheet.write(row, 1, value, formats['number'])
        row += 1

    if diagnostics:
        row += 1
        sheet.merge_range(row, 0, row, 3, 'EXTRACTION QUALITY', formats['subheader'])
        row += 1
        status = diagnostics.get('status', 'N/A')
        status_format = {'GOOD': formats['good'], 'NEEDS_REVIEW': formats['warning']}.get(status, formats['bad'])
        sheet.write(row, 0, 'Confidence', formats['label'])
        sheet.write(row, 1, diagnostics.get('confidence_score', 0), formats['number'])
        row += 1
        sheet.write(row, 0, 'Status', formats['label'])
        sheet.write(row, 1, status, status_format)
        row += 1
        for issue in diagnostics.get('issues_found', []):
            sheet.merge_range(row, 0, row, 3, issue, formats['warning'])
            row += 1

    for warning in statement.warnings:
        sheet.merge_range(row, 0, row, 3, warning, formats['warning'])
        row += 1


def add_transactions_sheet(workbook: xlsxwriter.Workbook, statement: Statement, formats: Dict) -> None:
    """
    Add detailed transactions sheet to workbook.
    """
    sheet = workbook.add_worksheet('Transactions')

    sheet.set_column('A:A', 12)
    sheet.set_column('B:B', 45)
    sheet.set_column('C:C', 25)
    sheet.set_column('D:D', 30)
    sheet.set_column('E:E', 18)
    sheet.set_column('F:H', 15)

    headers = ['Date', 'Description', 'Reference', 'Destinatory', 'Category', 'Debit', 'Credit', 'Balance']
    for col, header in enumerate(headers):
        sheet.write(0, col, header, formats['header'])

    transactions = statement.transactions
    sheet.freeze_panes(1, 0)
    sheet.autofilter(0, 0, len(transactions), len(headers) - 1)

    for row, txn in enumerate(transactions, start=1):
        sheet.write(row, 0, txn.date, formats['date'])
        sheet.write(row, 1, txn.description, formats['text'])
        sheet.write(row, 2, txn.reference or '', formats['text'])
        sheet.write(row, 3, txn.counterparty or '', formats['text'])
        sheet.write(row, 4, txn.category, formats['text'])

        if txn.direction == Direction.DEBIT:
            sheet.write(row, 5, txn.amount, formats['currency_negative'])
            sheet.write(row, 6, '', formats['text'])
        else:
            sheet.write(row, 5, '', formats['text'])
            sheet.write(row, 6, txn.amount, formats['currency'])

        sheet.write(row, 7, txn.balance, formats['currency'])


def build_monthly_summary(statement: Statement) -> pd.DataFrame:
    """Credits, debits and net per calendar month, oldest first."""
    columns = ['month', 'deposits', 'withdrawals', 'net', 'transaction_count']
    if not statement.transactions:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([
        {
            'date': pd.Timestamp(t.date),
            'deposits': t.amount if t.direction == Direction.CREDIT else 0.0,
            'withdrawals': t.amount if t.direction == Direction.DEBIT else 0.0,
        }
        for t in statement.transactions
    ])
    df['month'] = df['date'].dt.to_period('M').astype(str)
    monthly = df.groupby('month', sort=True).agg(
        deposits=('deposits', 'sum'),
        withdrawals=('withdrawals', 'sum'),
        transaction_count=('date', 'count'),
    ).reset_index()
    monthly['net'] = monthly['deposits'] - monthly['withdrawals']
    return monthly[columns].round({'deposits': 2, 'withdrawals': 2, 'net': 2})


def add_monthly_analysis_sheet(workbook: xlsxwriter.Workbook, monthly_data: pd.DataFrame, formats: Dict) -> None:
    """
    Add monthly breakdown analysis sheet.
    """
    sheet = workbook.add_worksheet('Monthly Analysis')
    sheet.set_column('A:E', 15)

    headers = ['Month', 'Credits', 'Debits', 'Net', 'Transactions']
    for col, header in enumerate(headers):
        sheet.write(0, col, header, formats['header'])

    for row, (_, data) in enumerate(monthly_data.iterrows(), start=1):
        sheet.write(row, 0, str(data['month']), formats['text'])
        sheet.write(row, 1, float(data['deposits']), formats['currency'])
        sheet.write(row, 2, float(data['withdrawals']), formats['currency'])
        net = float(data['net'])
        sheet.write(row, 3, net, formats['currency'] if net >= 0 else formats['currency_negative'])
        sheet.write(row, 4, int(data['transaction_count']), formats['number'])

    if len(monthly_data) >= 2:
        chart = workbook.add_chart({'type': 'column'})
        chart.add_series({
            'name': 'Credits',
            'categories': ['Monthly Analysis', 1, 0, len(monthly_data), 0],
            'values': ['Monthly Analysis', 1, 1, len(monthly_data), 1],
            'fill': {'color': '#4CAF50'},
        })
        chart.add_series({
            'name': 'Debits',
            'categories': ['Monthly Analysis', 1, 0, len(monthly_data), 0],
            'values': ['Monthly Analysis', 1, 2, len(monthly_data), 2],
            'fill': {'color': '#f44336'},
        })
        chart.set_title({'name': 'Monthly Cash Flow'})
        chart.set_style(10)
        sheet.insert_chart('G2', chart, {'x_scale': 1.5, 'y_scale': 1.2})


def generate_json_output(full_data: Dict, output_path: str) -> None:
    """
    Generate JSON output file with the statement data.
    """
    def json_serializer(obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, pd.DataFrame):
            return obj.to_dict('records')
        if hasattr(obj, 'item'):
            return obj.item()
        return str(obj)

    with open(output_path, 'w') as f:
        json.dump(full_data, f, indent=2, default=json_serializer)


def report_basename(statement: Statement, timestamp: Optional[str] = None) -> str:
    timestamp = timestamp or datetime.now().strftime('%Y%m%d_%H%M%S')
    bank = re.sub(r'[^A-Za-z0-9]+', '_', statement.bank_name).strip('_') or 'Bank'
    return f"Statement_{bank}_{statement.account_number}_{timestamp}"


def generate_statement_report(
    statement: Statement,
    diagnostics: Optional[Dict] = None,
    output_dir: str = OUTPUT_REPORTS_DIR,
) -> str:
    """
    Main function to generate the Excel report and its JSON companion.
    Returns the workbook path.
    """
    os.makedirs(output_dir, exist_ok=True)

    output_path = os.path.join(output_dir, report_basename(statement) + '.xlsx')

    workbook = create_workbook(output_path)
    formats = get_formats(workbook, statement.currency)

    add_summary_sheet(workbook, statement, diagnostics, formats)

    if statement.transactions:
        add_transactions_sheet(workbook, statement, formats)

    monthly_data = build_monthly_summary(statement)
    if not monthly_data.empty:
        add_monthly_analysis_sheet(workbook, monthly_data, formats)

    workbook.close()

    json_path = output_path.replace('.xlsx', '.json')
    json_data: Dict = {
        'generated_at': datetime.now().isoformat(),
        'statement': statement.to_dict(),
        'monthly_summary': monthly_data,
        'diagnostics': diagnostics,
    }
    generate_json_output(json_data, json_path)

    return output_path
