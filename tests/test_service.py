from datetime import date

import pytest

from finance_tracker import database
from finance_tracker.core.errors import (
    ActorUnavailable,
    InvalidAmount,
    InvalidDate,
    InvalidExchangeRate,
    RemoteOperationFailed,
    ValidationError,
)
from finance_tracker.core.models import Category, Report, TransactionType, UserProfile, UserRole
from finance_tracker.filters import SortSpec, TransactionFilter
from finance_tracker.outputs.summary import NoDataSummary, PrintableSummary
from finance_tracker.service import TransactionEntry, TransactionService, default_entry_date
from finance_tracker.timeutil import start_of_day_nanos

from conftest import make_data


def _entry(**kwargs):
    values = dict(date='2024-01-20', amount='30', transaction_type='expense', category='food')
    values.update(kwargs)
    return TransactionEntry(**values)


def test_entry_to_data_normalizes():
    data = _entry(amount='100', currency='USD', exchange_rate='83.5', description='Books').to_data()
    assert data.amount == 835000
    assert data.date == start_of_day_nanos(date(2024, 1, 20))
    assert data.transaction_type is TransactionType.EXPENSE
    assert data.category is Category.FOOD
    assert data.description == 'Books'


@pytest.mark.parametrize(
    "kwargs,error",
    [
        (dict(amount=''), InvalidAmount),
        (dict(amount='-1'), InvalidAmount),
        (dict(currency='EUR'), InvalidExchangeRate),
        (dict(date=''), InvalidDate),
        (dict(category='groceries'), ValidationError),
        (dict(transaction_type='transfer'), ValidationError),
    ],
)
def test_entry_validation(kwargs, error):
    with pytest.raises(error):
        _entry(**kwargs).to_data()


def test_invalid_entry_never_reaches_storage(service, monkeypatch):
    calls = []
    monkeypatch.setattr(database, 'add_transaction', lambda *a: calls.append(a))
    with pytest.raises(InvalidAmount):
        service.save_entry(_entry(amount='0'))
    assert calls == []


def test_entry_round_trips_through_edit_form(service):
    tid = service.save_entry(_entry(amount='1234.5', description='Dinner'))
    entry = TransactionEntry.from_transaction(service.get_transaction(tid))
    assert entry.date == '2024-01-20'
    assert entry.amount == '1234.50'
    assert entry.currency == 'INR'
    assert entry.to_data() == service.get_transaction(tid).data


def test_cache_is_invalidated_after_mutations(service):
    assert service.list_transactions() == []
    tid = service.save_entry(_entry())
    assert [tx.transaction_id for tx in service.list_transactions()] == [tid]

    service.save_entry(_entry(amount='45'), tid)
    assert service.list_transactions()[0].amount == 4500

    service.delete_transaction(tid)
    assert service.list_transactions() == []


def test_reads_are_served_from_cache(service, monkeypatch):
    service.save_entry(_entry())
    service.list_transactions()
    monkeypatch.setattr(database, 'get_user_transactions', lambda *a: pytest.fail('cache miss'))
    assert len(service.list_transactions()) == 1


def test_failed_mutation_keeps_cache(service, monkeypatch):
    tid = service.save_entry(_entry())
    cached = service.list_transactions()
    with pytest.raises(RemoteOperationFailed):
        service.delete_transaction(tid + 100)
    monkeypatch.setattr(database, 'get_user_transactions', lambda *a: pytest.fail('cache miss'))
    assert service.list_transactions() == cached


def test_remote_failures_are_wrapped(service):
    with pytest.raises(RemoteOperationFailed, match='Transaction not found'):
        service.get_transaction(42)
    with pytest.raises(RemoteOperationFailed):
        service.update_transaction(42, make_data(date(2024, 1, 1), 100))


def test_unavailable_actor():
    service = TransactionService(None, None)
    assert not service.available
    assert service.list_transactions() == []
    assert service.report(date(2024, 1, 1), date(2024, 1, 31)) == Report()
    assert service.get_profile() is None
    assert service.role() is UserRole.GUEST
    assert set(service.category_stats(date(2024, 1, 1), date(2024, 1, 31)).values()) == {0}
    with pytest.raises(ActorUnavailable):
        service.add_transaction(make_data(date(2024, 1, 1), 100))
    with pytest.raises(ActorUnavailable):
        service.delete_transaction(1)
    with pytest.raises(ActorUnavailable):
        service.save_profile('Alice')


def test_view_and_range(service):
    service.save_entry(_entry(date='2024-01-15', amount='100', transaction_type='income', category='salary'))
    service.save_entry(_entry(date='2024-01-20', amount='30'))
    service.save_entry(_entry(date='2024-02-01', amount='20', category='transport'))

    view = service.view(TransactionFilter(transaction_type='expense'), SortSpec('amount', 'asc'))
    assert [tx.amount for tx in view] == [2000, 3000]
    assert [tx.amount for tx in service.in_range(date(2024, 1, 1), date(2024, 1, 31))] == [3000, 10000]


def test_dashboard_and_reports(service):
    service.save_entry(_entry(date='2024-01-15', amount='100', transaction_type='income', category='salary'))
    service.save_entry(_entry(date='2024-01-20', amount='30'))
    service.save_entry(_entry(date='2024-02-01', amount='20', category='transport'))

    data = service.dashboard(date(2024, 1, 1), date(2024, 1, 31))
    assert (data['totals'].income, data['totals'].expense, data['totals'].net) == (10000, 3000, 7000)
    assert len(data['monthly_summaries']) == 1
    assert data['category_shares'][0].category is Category.FOOD

    assert isinstance(service.printable_report(date(2024, 1, 1), date(2024, 2, 29)), PrintableSummary)
    assert isinstance(service.printable_report(date(2023, 1, 1), date(2023, 1, 31)), NoDataSummary)

    filename, text = service.export_csv(date(2024, 2, 1), date(2024, 2, 29))
    assert filename == 'transactions_2024-02-01_to_2024-02-29.csv'
    assert text.split('\n')[1] == '"Feb 1, 2024",expense,20.00,Transport,'

    assert service.monthly_stats(1, 2024).income == 10000
    report = service.report(date(2024, 1, 1), date(2024, 2, 29))
    assert len(report.monthly_summaries) == len(report.category_breakdowns) == 2


def test_profile_and_roles(service, db_path):
    assert service.get_profile() is None
    with pytest.raises(ValidationError):
        service.save_profile('   ')
    service.save_profile('  Alice ')
    assert service.get_profile() == UserProfile(name='Alice')
    assert service.role() is UserRole.ADMIN

    bob = TransactionService(db_path, 'bob')
    assert bob.role() is UserRole.USER
    with pytest.raises(RemoteOperationFailed, match='only admins'):
        bob.assign_role('alice', UserRole.GUEST)
    service.assign_role('bob', UserRole.GUEST)
    with pytest.raises(RemoteOperationFailed):
        bob.list_transactions()


def test_default_entry_date_is_iso():
    assert date.fromisoformat(default_entry_date())
