# finance_tracker/outputs/csv_output.py

import csv
import io
import logging
import os
from datetime import date
from pathlib import Path

from finance_tracker.core.models import TransactionType, category_label
from finance_tracker.filters import newest_first
from finance_tracker.money import format_amount
from finance_tracker.outputs.base import BaseOutput
from finance_tracker.timeutil import format_date

logger = logging.getLogger(__name__)

CSV_HEADER = ['Date', 'Type', 'Amount (INR)', 'Category', 'Description']


def _format_row(fields):
    # '\r\n' so csv.writer quotes fields holding either line-break character
    buf = io.StringIO()
    csv.writer(buf, lineterminator='\r\n').writerow(fields)
    return buf.getvalue()[:-2]


def escape_csv_field(field):
    """Quote a field containing a comma, quote or newline; double inner quotes."""
    if not field:
        return ''
    return _format_row([field])


def to_csv(transactions):
    """
    Serialize transactions newest first under the fixed header.
    Rows are joined with '\\n' and there is no trailing newline.
    """
    lines = [_format_row(CSV_HEADER)]
    for tx in newest_first(transactions):
        lines.append(_format_row([
            format_date(tx.date),
            TransactionType(tx.transaction_type).value,
            format_amount(tx.amount),
            category_label(tx.category),
            tx.description,
        ]))
    return '\n'.join(lines)


def parse_csv(text):
    """Read a document produced by to_csv back into rows of strings."""
    return list(csv.reader(io.StringIO(text, newline='')))


def export_filename(start_date: date, end_date: date) -> str:
    return f"transactions_{start_date.isoformat()}_to_{end_date.isoformat()}.csv"


class CSVOutput(BaseOutput):
    """
    Writes the transactions of a report range to
    transactions_<start>_to_<end>.csv (UTF-8) inside output_dir.
    """
    def __init__(self, config):
        self.config     = config
        self.output_dir = config.get('output_dir', 'data')
        os.makedirs(self.output_dir, exist_ok=True)

    def write(self, transactions, start_date, end_date):
        transactions = list(transactions)
        out_path = Path(self.output_dir) / export_filename(start_date, end_date)
        with open(out_path, 'w', encoding='utf-8', newline='') as f:
            f.write(to_csv(transactions))

        logger.info("Written %d transactions to %s", len(transactions), out_path)
        return out_path
