# finance_tracker/filters.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from operator import attrgetter
from typing import Iterable, List, Optional, Union

from finance_tracker.core.models import Category, Transaction, TransactionType
from finance_tracker.timeutil import end_of_day_nanos, nanos_to_calendar_date, start_of_day_nanos

ALL = "all"
SORT_KEYS = ("date", "amount")
SORT_ORDERS = ("asc", "desc")


@dataclass
class TransactionFilter:
    """Predicates applied together; ``"all"`` disables a predicate.

    Date bounds are inclusive nanosecond timestamps.
    """
    transaction_type: Union[TransactionType, str] = ALL
    category: Union[Category, str] = ALL
    date_start: Optional[int] = None
    date_end: Optional[int] = None

    def __post_init__(self) -> None:
        if self.transaction_type != ALL:
            self.transaction_type = TransactionType(self.transaction_type)
        if self.category != ALL:
            self.category = Category(self.category)

    @classmethod
    def for_dates(
        cls,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type=ALL,
        category=ALL,
    ) -> "TransactionFilter":
        """Bounds from calendar days: start at 00:00:00.000, end at 23:59:59.999 UTC."""
        return cls(
            transaction_type=transaction_type,
            category=category,
            date_start=start_of_day_nanos(start_date) if start_date else None,
            date_end=end_of_day_nanos(end_date) if end_date else None,
        )

    def matches(self, tx: Transaction) -> bool:
        if self.transaction_type != ALL and tx.transaction_type != self.transaction_type:
            return False
        if self.category != ALL and tx.category != self.category:
            return False
        if self.date_start is not None and tx.date < self.date_start:
            return False
        if self.date_end is not None and tx.date > self.date_end:
            return False
        return True


@dataclass(frozen=True)
class SortSpec:
    key: str = "date"
    order: str = "desc"

    def __post_init__(self) -> None:
        if self.key not in SORT_KEYS:
            raise ValueError(f"sort key must be one of {SORT_KEYS}, got '{self.key}'")
        if self.order not in SORT_ORDERS:
            raise ValueError(f"sort order must be one of {SORT_ORDERS}, got '{self.order}'")


def filter_transactions(
    transactions: Iterable[Transaction], flt: Optional[TransactionFilter] = None
) -> List[Transaction]:
    if flt is None:
        return list(transactions)
    return [tx for tx in transactions if flt.matches(tx)]


def sort_transactions(
    transactions: Iterable[Transaction], spec: Optional[SortSpec] = None
) -> List[Transaction]:
    """Stable sort; equal keys keep their input order in both directions."""
    spec = spec or SortSpec()
    return sorted(transactions, key=attrgetter(spec.key), reverse=spec.order == "desc")


def apply_view(
    transactions: Iterable[Transaction],
    flt: Optional[TransactionFilter] = None,
    spec: Optional[SortSpec] = None,
) -> List[Transaction]:
    return sort_transactions(filter_transactions(transactions, flt), spec)


def newest_first(transactions: Iterable[Transaction]) -> List[Transaction]:
    return sort_transactions(transactions, SortSpec("date", "desc"))


def filter_by_month(transactions: Iterable[Transaction], month_str: str) -> List[Transaction]:
    """Transactions dated (UTC) within a ``YYYY-MM`` month, input order kept."""
    year, month = map(int, month_str.split('-'))
    return [tx for tx in transactions if _year_month(tx) == (year, month)]


def _year_month(tx: Transaction):
    day = nanos_to_calendar_date(tx.date)
    return day.year, day.month
