# finance_tracker/outputs/summary.py
"""Printable report: totals plus every transaction in the range, newest first."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Union

from finance_tracker.aggregation import compute_totals
from finance_tracker.core.models import Transaction, TransactionType, category_label
from finance_tracker.filters import newest_first
from finance_tracker.money import format_net, format_signed, to_display_amount
from finance_tracker.timeutil import format_calendar_date, format_date

NO_DATA_MESSAGE = "No transactions found for the selected date range"
EMPTY_DESCRIPTION = "—"


@dataclass(frozen=True)
class PrintableRow:
    date: str
    transaction_type: str
    category: str
    description: str
    amount: str


@dataclass
class PrintableSummary:
    start_date: date
    end_date: date
    total_income: int
    total_expense: int
    net: int
    rows: List[PrintableRow] = field(default_factory=list)

    has_data = True

    @property
    def period(self) -> str:
        return f"{format_calendar_date(self.start_date)} - {format_calendar_date(self.end_date)}"


@dataclass
class NoDataSummary:
    """Returned instead of an empty table when the range has no transactions."""
    start_date: date
    end_date: date
    message: str = NO_DATA_MESSAGE

    has_data = False

    @property
    def period(self) -> str:
        return f"{format_calendar_date(self.start_date)} - {format_calendar_date(self.end_date)}"


def _row(tx: Transaction) -> PrintableRow:
    return PrintableRow(
        date=format_date(tx.date),
        transaction_type=TransactionType(tx.transaction_type).value,
        category=category_label(tx.category),
        description=tx.description or EMPTY_DESCRIPTION,
        amount=format_signed(tx.amount, tx.transaction_type),
    )


def to_printable_summary(
    transactions: Iterable[Transaction], start_date: date, end_date: date
) -> Union[PrintableSummary, NoDataSummary]:
    transactions = list(transactions)
    if not transactions:
        return NoDataSummary(start_date=start_date, end_date=end_date)
    totals = compute_totals(transactions)
    return PrintableSummary(
        start_date=start_date,
        end_date=end_date,
        total_income=totals.income,
        total_expense=totals.expense,
        net=totals.net,
        rows=[_row(tx) for tx in newest_first(transactions)],
    )


def render_text(summary: Union[PrintableSummary, NoDataSummary]) -> str:
    lines = ["Financial Report", summary.period, ""]
    if not summary.has_data:
        lines.append(summary.message)
        return "\n".join(lines)

    lines += [
        f"Total Income:   {to_display_amount(summary.total_income)}",
        f"Total Expenses: {to_display_amount(summary.total_expense)}",
        f"Net Amount:     {format_net(summary.net)}",
        "",
    ]
    headers = ("Date", "Type", "Category", "Description", "Amount")
    table = [headers] + [
        (r.date, r.transaction_type, r.category, " ".join(r.description.split()), r.amount)
        for r in summary.rows
    ]
    widths = [max(len(row[i]) for row in table) for i in range(len(headers))]
    for row in table:
        cells = [cell.ljust(widths[i]) for i, cell in enumerate(row[:-1])]
        cells.append(row[-1].rjust(widths[-1]))
        lines.append("  ".join(cells).rstrip())
    return "\n".join(lines)
