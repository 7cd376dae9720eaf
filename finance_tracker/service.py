# finance_tracker/service.py
"""Client-side access to the ledger.

``TransactionService`` is what the CLI and web server talk to. It validates
and normalizes input before anything is stored, turns storage failures into
``RemoteOperationFailed`` and keeps a cached copy of the caller's
transactions that is thrown away after every successful change.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date
from functools import wraps
from typing import Dict, List, Optional

from finance_tracker import database
from finance_tracker.aggregation import (
    compute_category_breakdown,
    compute_category_percentages,
    compute_monthly_summaries,
    compute_totals,
)
from finance_tracker.core.errors import ActorUnavailable, RemoteOperationFailed, ValidationError
from finance_tracker.core.models import (
    Category,
    CategoryBreakdown,
    MonthlySummary,
    Report,
    Transaction,
    TransactionData,
    TransactionType,
    UserProfile,
    UserRole,
)
from finance_tracker.currency import BASE_CURRENCY, normalize_amount
from finance_tracker.filters import SortSpec, TransactionFilter, apply_view
from finance_tracker.money import format_amount
from finance_tracker.outputs.csv_output import export_filename, to_csv
from finance_tracker.outputs.summary import to_printable_summary
from finance_tracker.timeutil import (
    end_of_day_nanos,
    format_date_for_input,
    now_nanos,
    parse_input_date,
    start_of_day_nanos,
)

logger = logging.getLogger(__name__)

_REMOTE_ERRORS = (sqlite3.Error, LookupError, PermissionError, OSError)


@dataclass
class TransactionEntry:
    """Raw values from the add/edit form, before validation."""
    date: str
    amount: str
    transaction_type: str = TransactionType.EXPENSE.value
    category: str = Category.OTHER.value
    description: str = ""
    currency: str = BASE_CURRENCY
    exchange_rate: Optional[str] = None
    custom_currency_code: str = ""

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "TransactionEntry":
        """Pre-fill an edit form; stored amounts are always in the base currency."""
        return cls(
            date=format_date_for_input(tx.date),
            amount=format_amount(tx.amount),
            transaction_type=TransactionType(tx.transaction_type).value,
            category=Category(tx.category).value,
            description=tx.description,
        )

    def to_data(self) -> TransactionData:
        """Validate and convert into a storable payload (amount in base paise)."""
        try:
            transaction_type = TransactionType(self.transaction_type)
            category = Category(self.category)
        except ValueError as exc:
            raise ValidationError(str(exc)) from None
        amount = normalize_amount(
            self.amount,
            self.exchange_rate,
            self.currency,
            self.custom_currency_code,
        )
        day = parse_input_date(self.date)
        return TransactionData(
            date=start_of_day_nanos(day),
            amount=amount,
            transaction_type=transaction_type,
            category=category,
            description=self.description or "",
        )


def _remote(action: str):
    """Re-raise storage rejections as RemoteOperationFailed; never retried."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except _REMOTE_ERRORS as exc:
                logger.warning("Failed to %s: %s", action, exc)
                raise RemoteOperationFailed(f"Failed to {action}. {exc}") from exc
        return wrapper
    return decorator


class TransactionService:
    def __init__(self, db_path: Optional[str], principal: Optional[str]):
        self.db_path = db_path
        self.principal = principal
        self._cache: Optional[List[Transaction]] = None

    @property
    def available(self) -> bool:
        return bool(self.db_path and self.principal)

    def _require_actor(self) -> None:
        if not self.available:
            raise ActorUnavailable("Actor not available")

    def invalidate(self) -> None:
        self._cache = None

    # -- reads: an unavailable actor just means "no data yet" -----------------

    @_remote("load transactions")
    def list_transactions(self) -> List[Transaction]:
        if not self.available:
            return []
        if self._cache is None:
            self._cache = database.get_user_transactions(self.db_path, self.principal)
        return list(self._cache)

    def view(
        self,
        flt: Optional[TransactionFilter] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[Transaction]:
        return apply_view(self.list_transactions(), flt, sort)

    def in_range(self, start_date: date, end_date: date) -> List[Transaction]:
        return self.view(TransactionFilter.for_dates(start_date, end_date))

    @_remote("load transaction")
    def get_transaction(self, transaction_id: int) -> Transaction:
        self._require_actor()
        return database.get_transaction(self.db_path, self.principal, transaction_id)

    @_remote("load report")
    def report(self, start_date: date, end_date: date) -> Report:
        if not self.available:
            return Report()
        return database.generate_report(
            self.db_path, self.principal, start_of_day_nanos(start_date), end_of_day_nanos(end_date)
        )

    @_remote("load category stats")
    def category_stats(self, start_date: date, end_date: date) -> CategoryBreakdown:
        if not self.available:
            return compute_category_breakdown([])
        return database.get_category_stats(
            self.db_path, self.principal, start_of_day_nanos(start_date), end_of_day_nanos(end_date)
        )

    @_remote("load monthly stats")
    def monthly_stats(self, month: int, year: int) -> MonthlySummary:
        if not self.available:
            return MonthlySummary(year=year, month=month)
        return database.get_monthly_stats(self.db_path, self.principal, month, year)

    @_remote("load profile")
    def get_profile(self) -> Optional[UserProfile]:
        """None means the caller still needs onboarding."""
        if not self.available:
            return None
        return database.get_caller_user_profile(self.db_path, self.principal)

    @_remote("load role")
    def role(self) -> UserRole:
        if not self.available:
            return UserRole.GUEST
        return database.get_caller_user_role(self.db_path, self.principal)

    # -- mutations: require an actor, invalidate the cache on success ---------

    @_remote("save transaction")
    def add_transaction(self, data: TransactionData) -> int:
        self._require_actor()
        transaction_id = database.add_transaction(self.db_path, self.principal, data)
        self.invalidate()
        return transaction_id

    @_remote("update transaction")
    def update_transaction(self, transaction_id: int, data: TransactionData) -> None:
        self._require_actor()
        database.update_transaction(self.db_path, self.principal, transaction_id, data)
        self.invalidate()

    @_remote("delete transaction")
    def delete_transaction(self, transaction_id: int) -> None:
        self._require_actor()
        database.delete_transaction(self.db_path, self.principal, transaction_id)
        self.invalidate()

    def save_entry(self, entry: TransactionEntry, transaction_id: Optional[int] = None) -> int:
        """Validate an entry, then add it or replace *transaction_id*."""
        data = entry.to_data()
        if transaction_id is None:
            return self.add_transaction(data)
        self.update_transaction(transaction_id, data)
        return transaction_id

    @_remote("save profile")
    def save_profile(self, name: str) -> None:
        self._require_actor()
        if not name or not name.strip():
            raise ValidationError("Please enter your name")
        database.save_caller_user_profile(self.db_path, self.principal, UserProfile(name=name.strip()))

    @_remote("assign role")
    def assign_role(self, user: str, role: UserRole) -> None:
        self._require_actor()
        database.assign_user_role(self.db_path, self.principal, user, role)

    # -- derived views ---------------------------------------------------------

    def dashboard(self, start_date: date, end_date: date) -> Dict[str, object]:
        scoped = self.in_range(start_date, end_date)
        return {
            "start_date": start_date,
            "end_date": end_date,
            "totals": compute_totals(scoped),
            "monthly_summaries": compute_monthly_summaries(scoped),
            "category_shares": compute_category_percentages(compute_category_breakdown(scoped)),
        }

    def printable_report(self, start_date: date, end_date: date):
        return to_printable_summary(self.in_range(start_date, end_date), start_date, end_date)

    def export_csv(self, start_date: date, end_date: date):
        """Return ``(filename, csv_text)`` for the report range."""
        return export_filename(start_date, end_date), to_csv(self.in_range(start_date, end_date))


def default_entry_date() -> str:
    """Today (UTC) in the form used by date inputs."""
    return format_date_for_input(now_nanos())
