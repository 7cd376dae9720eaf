import json
import threading
from http.server import ThreadingHTTPServer
from urllib.error import HTTPError
from urllib.request import urlopen

import pytest

from finance_tracker import web
from finance_tracker.config import DEFAULT_CONFIG
from finance_tracker.service import TransactionEntry, TransactionService


def _seed(service):
    service.save_entry(TransactionEntry('2024-01-15', '100', 'income', 'salary', 'Pay'))
    service.save_entry(TransactionEntry('2024-01-20', '30', 'expense', 'food', 'Lunch'))
    service.save_entry(TransactionEntry('2024-02-01', '20', 'expense', 'transport'))


def _query(**params):
    return {k: [v] for k, v in params.items()}


def test_transactions_endpoint_filters_and_sorts(service):
    _seed(service)
    status, payload = web.handle_api(
        service, '/api/transactions', _query(type='expense', sort_by='amount', sort_dir='asc'), DEFAULT_CONFIG
    )
    assert status == 200
    assert [tx['amount'] for tx in payload] == [2000, 3000]
    assert payload[1]['date_label'] == 'Jan 20, 2024'
    assert payload[1]['amount_label'] == '−₹30.00'
    assert payload[1]['category_label'] == 'Food'


def test_dashboard_endpoint(service):
    _seed(service)
    status, payload = web.handle_api(
        service, '/api/dashboard', _query(start_date='2024-01-01', end_date='2024-02-29'), DEFAULT_CONFIG
    )
    assert status == 200
    assert payload['totals'] == {'income': 10000, 'expense': 5000, 'net': 5000}
    assert payload['totals_label']['net'] == '+₹50.00'
    assert [(m['year'], m['month']) for m in payload['monthly_summaries']] == [(2024, 1), (2024, 2)]
    assert payload['category_shares'][0]['category'] == 'food'
    json.dumps(payload)


def test_report_endpoint(service):
    _seed(service)
    status, payload = web.handle_api(
        service, '/api/report', _query(start_date='2024-01-01', end_date='2024-01-31'), DEFAULT_CONFIG
    )
    assert status == 200
    assert payload['monthly_summaries'] == [{'year': 2024, 'month': 1, 'income': 10000, 'expense': 3000}]
    assert payload['category_breakdowns'][0]['food'] == 3000
    assert set(payload['category_breakdowns'][0]) == {
        'salary', 'other', 'entertainment', 'food', 'transport', 'utilities'
    }


def test_export_endpoint(service):
    _seed(service)
    status, (filename, text) = web.handle_api(
        service, '/api/export', _query(start_date='2024-02-01', end_date='2024-02-29'), DEFAULT_CONFIG
    )
    assert status == 200
    assert filename == 'transactions_2024-02-01_to_2024-02-29.csv'
    assert text.count('\n') == 1


@pytest.mark.parametrize(
    "path,query,status",
    [
        ('/api/dashboard', _query(start_date='2024-02-01', end_date='2024-01-01'), 400),
        ('/api/report', _query(start_date='01/01/2024'), 400),
        ('/api/transactions', _query(category='groceries'), 400),
        ('/api/transactions', _query(sort_by='description'), 400),
        ('/api/unknown', {}, 404),
    ],
)
def test_bad_requests(service, path, query, status):
    code, payload = web.handle_api(service, path, query, DEFAULT_CONFIG)
    assert code == status
    assert 'error' in payload


def test_storage_failure_is_502(db_path):
    TransactionService(db_path, 'alice').assign_role('bob', 'guest')
    code, payload = web.handle_api(TransactionService(db_path, 'bob'), '/api/transactions', {}, DEFAULT_CONFIG)
    assert code == 502
    assert 'Unauthorized' in payload['error']


def test_no_principal_returns_empty_data():
    code, payload = web.handle_api(TransactionService(None, None), '/api/transactions', {}, DEFAULT_CONFIG)
    assert (code, payload) == (200, [])


def test_server_serves_json_and_csv(db_path):
    _seed(TransactionService(db_path, 'alice'))
    handler = type('Handler', (web.FinanceWebHandler,), {
        'db_path': db_path,
        'principal': 'alice',
        'config': DEFAULT_CONFIG,
    })
    server = ThreadingHTTPServer(('127.0.0.1', 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f'http://127.0.0.1:{server.server_address[1]}'
    try:
        with urlopen(f'{base}/api/transactions') as resp:
            assert resp.headers['Content-Type'] == 'application/json'
            assert len(json.loads(resp.read())) == 3

        with urlopen(f'{base}/api/export?start_date=2024-01-01&end_date=2024-01-31') as resp:
            assert resp.headers['Content-Disposition'] == (
                'attachment; filename="transactions_2024-01-01_to_2024-01-31.csv"'
            )
            assert resp.read().decode('utf-8').startswith('Date,Type,Amount (INR),Category,Description\n')

        with pytest.raises(HTTPError) as exc:
            urlopen(f'{base}/nothing-here')
        assert exc.value.code == 404
    finally:
        server.shutdown()
        server.server_close()
