# finance_tracker/aggregation.py
"""Monthly trends, category breakdowns and totals.

Every function here is pure: it reads the transactions passed in and builds
new values, so calling it twice on the same input gives the same result.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Tuple

import pandas as pd

from finance_tracker.core.models import (
    Category,
    CategoryBreakdown,
    CategoryShare,
    MonthlySummary,
    Report,
    Totals,
    Transaction,
    TransactionType,
    category_label,
    empty_breakdown,
)
from finance_tracker.filters import TransactionFilter, filter_by_month, filter_transactions
from finance_tracker.timeutil import nanos_to_calendar_date

MONTH_LABEL_FMT = "%b %Y"


def _month_key(tx: Transaction) -> Tuple[int, int]:
    day = nanos_to_calendar_date(tx.date)
    return day.year, day.month


def compute_monthly_summaries(transactions: Iterable[Transaction]) -> List[MonthlySummary]:
    """One summary per (year, month) present, oldest month first."""
    totals: Dict[Tuple[int, int], List[int]] = {}
    for tx in transactions:
        bucket = totals.setdefault(_month_key(tx), [0, 0])
        if tx.transaction_type == TransactionType.INCOME:
            bucket[0] += tx.amount
        else:
            bucket[1] += tx.amount
    return [
        MonthlySummary(year=year, month=month, income=income, expense=expense)
        for (year, month), (income, expense) in sorted(totals.items())
    ]


def compute_category_breakdown(transactions: Iterable[Transaction]) -> CategoryBreakdown:
    """Expense totals per category; every category is present, zero if unused."""
    breakdown = empty_breakdown()
    for tx in transactions:
        if tx.transaction_type == TransactionType.EXPENSE:
            breakdown[Category(tx.category)] += tx.amount
    return breakdown


def compute_category_percentages(breakdown: CategoryBreakdown) -> List[CategoryShare]:
    total = sum(breakdown.values())
    shares = [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=(amount / total) * 100 if total > 0 else 0.0,
        )
        for category, amount in breakdown.items()
    ]
    return sorted(shares, key=lambda share: share.amount, reverse=True)


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    income = expense = 0
    for tx in transactions:
        if tx.transaction_type == TransactionType.INCOME:
            income += tx.amount
        else:
            expense += tx.amount
    return Totals(income=income, expense=expense, net=income - expense)


def compute_monthly_stats(transactions: Iterable[Transaction], month: int, year: int) -> MonthlySummary:
    """Summary of a single month; zero totals when it has no transactions."""
    in_month = filter_by_month(transactions, f"{year:04d}-{month:02d}")
    summaries = compute_monthly_summaries(in_month)
    return summaries[0] if summaries else MonthlySummary(year=year, month=month)


def build_report(transactions: Iterable[Transaction], start_ns: int, end_ns: int) -> Report:
    """Report over the inclusive [start_ns, end_ns] range.

    ``category_breakdowns[i]`` is the expense breakdown of the month described
    by ``monthly_summaries[i]``.
    """
    scoped = filter_transactions(transactions, TransactionFilter(date_start=start_ns, date_end=end_ns))
    summaries = compute_monthly_summaries(scoped)
    by_month: Dict[Tuple[int, int], List[Transaction]] = {}
    for tx in scoped:
        by_month.setdefault(_month_key(tx), []).append(tx)
    breakdowns = [
        compute_category_breakdown(by_month[(summary.year, summary.month)])
        for summary in summaries
    ]
    return Report(monthly_summaries=summaries, category_breakdowns=breakdowns)


def month_label(summary: MonthlySummary) -> str:
    return date(summary.year, summary.month, 1).strftime(MONTH_LABEL_FMT)


def monthly_trend_frame(summaries: Iterable[MonthlySummary]) -> pd.DataFrame:
    """Income vs expenses per month, in rupees, for charts and tables."""
    rows = [
        {
            "Month": month_label(s),
            "Income": s.income / 100,
            "Expenses": s.expense / 100,
        }
        for s in summaries
    ]
    return pd.DataFrame(rows, columns=["Month", "Income", "Expenses"])


def category_frame(shares: Iterable[CategoryShare]) -> pd.DataFrame:
    rows = [
        {
            "Category": category_label(share.category),
            "Amount": share.amount / 100,
            "Share (%)": round(share.percentage, 1),
        }
        for share in shares
    ]
    return pd.DataFrame(rows, columns=["Category", "Amount", "Share (%)"])
