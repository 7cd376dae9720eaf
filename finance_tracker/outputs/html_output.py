# finance_tracker/outputs/html_output.py

import logging
import os
from html import escape
from pathlib import Path

from finance_tracker.money import format_net, to_display_amount
from finance_tracker.outputs.base import BaseOutput
from finance_tracker.outputs.summary import to_printable_summary

logger = logging.getLogger(__name__)


def report_filename(start_date, end_date):
    return f"report_{start_date.isoformat()}_to_{end_date.isoformat()}.html"


def render_html(summary):
    """Build a standalone, print-friendly HTML page for a printable summary."""
    html_parts = [
        "<html><head><meta charset='UTF-8'>",
        "<style>body{font-family:sans-serif;}table{border-collapse:collapse;margin-bottom:20px;}th,td{border:1px solid #ccc;padding:4px 8px;}th{background:#eee;}td.amount{text-align:right;}</style>",
        "</head><body>",
        "<h1>Financial Report</h1>",
        f"<p>{escape(summary.period)}</p>",
    ]

    if not summary.has_data:
        html_parts.append(f"<p class='no-data'>{escape(summary.message)}</p>")
        html_parts.append("</body></html>")
        return "\n".join(html_parts)

    # Summary table
    html_parts.append("<h2>Summary</h2>")
    html_parts.append("<table><tr><th>Total Income</th><th>Total Expenses</th><th>Net Amount</th></tr>")
    html_parts.append(
        f"<tr><td>{escape(to_display_amount(summary.total_income))}</td>"
        f"<td>{escape(to_display_amount(summary.total_expense))}</td>"
        f"<td>{escape(format_net(summary.net))}</td></tr>"
    )
    html_parts.append("</table>")

    # Transactions table
    html_parts.append("<h2>Transactions</h2>")
    html_parts.append("<table><tr><th>Date</th><th>Type</th><th>Category</th><th>Description</th><th>Amount</th></tr>")
    for row in summary.rows:
        html_parts.append(
            f"<tr><td>{escape(row.date)}</td><td>{escape(row.transaction_type)}</td>"
            f"<td>{escape(row.category)}</td><td>{escape(row.description)}</td>"
            f"<td class='amount'>{escape(row.amount)}</td></tr>"
        )
    html_parts.append("</table>")

    html_parts.append("</body></html>")
    return "\n".join(html_parts)


class HTMLOutput(BaseOutput):
    """Generate a static, printable HTML report for a date range."""

    def __init__(self, config):
        self.config = config
        self.output_dir = config.get('output_dir', 'data')
        os.makedirs(self.output_dir, exist_ok=True)

    def write(self, transactions, start_date, end_date):
        summary = to_printable_summary(transactions, start_date, end_date)
        out_path = Path(self.output_dir) / report_filename(start_date, end_date)
        with open(out_path, 'w', encoding='utf-8') as f:
            f.write(render_html(summary))

        logger.info("Written report for %s to %s", summary.period, out_path)
        return out_path
