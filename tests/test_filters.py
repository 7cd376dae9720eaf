from dataclasses import replace
from datetime import date

import pytest

from finance_tracker.core.models import Category, TransactionType
from finance_tracker.filters import (
    SortSpec,
    TransactionFilter,
    apply_view,
    filter_by_month,
    filter_transactions,
    newest_first,
    sort_transactions,
)
from finance_tracker.timeutil import NS_PER_MS, end_of_day_nanos, start_of_day_nanos

from conftest import make_tx


def test_date_range_is_inclusive_to_the_millisecond():
    last_instant = replace(make_tx(1, date(2024, 1, 31), 100), date=end_of_day_nanos(date(2024, 1, 31)))
    next_month = make_tx(2, date(2024, 2, 1), 100)
    first_instant = make_tx(3, date(2024, 1, 1), 100)

    flt = TransactionFilter.for_dates(date(2024, 1, 1), date(2024, 1, 31))
    assert flt.date_start == start_of_day_nanos(date(2024, 1, 1))
    assert flt.date_end == start_of_day_nanos(date(2024, 2, 1)) - NS_PER_MS

    kept = filter_transactions([last_instant, next_month, first_instant], flt)
    assert [tx.transaction_id for tx in kept] == [1, 3]


def test_type_and_category_predicates_combine(sample_txs):
    flt = TransactionFilter(transaction_type='expense', category='food')
    assert flt.transaction_type is TransactionType.EXPENSE
    assert flt.category is Category.FOOD
    assert [tx.transaction_id for tx in filter_transactions(sample_txs, flt)] == [2]

    only_expenses = filter_transactions(sample_txs, TransactionFilter(transaction_type='expense'))
    assert [tx.transaction_id for tx in only_expenses] == [2, 3]


def test_all_filter_keeps_everything(sample_txs):
    assert filter_transactions(sample_txs, TransactionFilter()) == sample_txs
    assert filter_transactions(sample_txs) == sample_txs


def test_unknown_category_is_rejected():
    with pytest.raises(ValueError):
        TransactionFilter(category='groceries')


def test_amount_sort_is_stable_in_both_directions():
    a = make_tx(1, date(2024, 1, 1), 500)
    b = make_tx(2, date(2024, 1, 2), 500)
    c = make_tx(3, date(2024, 1, 3), 100)

    desc = sort_transactions([a, b, c], SortSpec('amount', 'desc'))
    assert [tx.transaction_id for tx in desc] == [1, 2, 3]

    asc = sort_transactions([a, b, c], SortSpec('amount', 'asc'))
    assert [tx.transaction_id for tx in asc] == [3, 1, 2]


def test_default_sort_is_newest_first(sample_txs):
    assert [tx.transaction_id for tx in sort_transactions(sample_txs)] == [3, 2, 1]
    assert newest_first(sample_txs) == sort_transactions(sample_txs)


def test_sort_does_not_mutate_input(sample_txs):
    original = list(sample_txs)
    sort_transactions(sample_txs, SortSpec('amount', 'asc'))
    assert sample_txs == original


@pytest.mark.parametrize("key,order", [("description", "asc"), ("date", "up")])
def test_sort_spec_validation(key, order):
    with pytest.raises(ValueError):
        SortSpec(key, order)


def test_apply_view_filters_then_sorts(sample_txs):
    view = apply_view(
        sample_txs,
        TransactionFilter(transaction_type='expense'),
        SortSpec('amount', 'asc'),
    )
    assert [tx.amount for tx in view] == [2000, 3000]


def test_filter_by_month(sample_txs):
    assert [tx.transaction_id for tx in filter_by_month(sample_txs, '2024-01')] == [1, 2]
    assert filter_by_month(sample_txs, '2023-01') == []


def test_date_sort_keeps_ties_in_input_order():
    first = make_tx(1, date(2024, 3, 5), 100)
    second = make_tx(2, date(2024, 3, 5), 200)
    older = make_tx(3, date(2024, 3, 1), 300)

    asc = sort_transactions([first, second, older], SortSpec('date', 'asc'))
    assert [tx.transaction_id for tx in asc] == [3, 1, 2]

    desc = sort_transactions([first, second, older], SortSpec('date', 'desc'))
    assert [tx.transaction_id for tx in desc] == [1, 2, 3]


def test_date_descending_is_reversed_ascending(sample_txs):
    asc = sort_transactions(sample_txs, SortSpec('date', 'asc'))
    desc = sort_transactions(sample_txs, SortSpec('date', 'desc'))
    assert list(reversed(asc)) == desc
