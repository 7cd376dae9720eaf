from datetime import date

import pytest

from finance_tracker.core.models import Category, Transaction, TransactionData, TransactionType
from finance_tracker.service import TransactionService
from finance_tracker.timeutil import start_of_day_nanos


def make_tx(tid, day, amount, kind='expense', category='other', description=''):
    return Transaction(
        transaction_id=tid,
        date=start_of_day_nanos(day),
        amount=amount,
        transaction_type=TransactionType(kind),
        category=Category(category),
        description=description,
    )


def make_data(day, amount, kind='expense', category='other', description=''):
    return TransactionData(
        date=start_of_day_nanos(day),
        amount=amount,
        transaction_type=TransactionType(kind),
        category=Category(category),
        description=description,
    )


@pytest.fixture
def sample_txs():
    return [
        make_tx(1, date(2024, 1, 15), 10000, 'income', 'salary', 'January pay'),
        make_tx(2, date(2024, 1, 20), 3000, 'expense', 'food', 'Groceries'),
        make_tx(3, date(2024, 2, 1), 2000, 'expense', 'transport', 'Metro card'),
    ]


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / 'ledger.db')


@pytest.fixture
def service(db_path):
    return TransactionService(db_path, 'alice')


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ('FINTRACK_DB_PATH', 'FINTRACK_PRINCIPAL', 'FINTRACK_OUTPUT_DIR', 'FINTRACK_LOG_LEVEL'):
        # recorded so teardown also drops values loaded from --env-file
        monkeypatch.setenv(key, '')
        monkeypatch.delenv(key)
