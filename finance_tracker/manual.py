import yaml

from finance_tracker.currency import BASE_CURRENCY
from finance_tracker.service import TransactionEntry


def load_manual_transactions(path):
    """Load transaction entries from a YAML file.

    Each item needs ``date`` and ``amount``; ``type``, ``category``,
    ``description``, ``currency``, ``exchange_rate`` and
    ``custom_currency_code`` are optional. Entries are validated when saved.
    """
    with open(path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or []

    if not isinstance(data, list):
        raise ValueError(f"Expected a list of entries in {path}")

    entries = []
    for entry in data:
        date_val = entry.get('date')
        if not date_val:
            raise ValueError(f"Missing 'date' in manual entry: {entry}")
        if entry.get('amount') is None:
            raise ValueError(f"Missing 'amount' in manual entry: {entry}")
        rate = entry.get('exchange_rate')
        entries.append(
            TransactionEntry(
                date=date_val,
                amount=str(entry['amount']),
                transaction_type=entry.get('type', 'expense'),
                category=entry.get('category', 'other'),
                description=entry.get('description', '') or '',
                currency=entry.get('currency', BASE_CURRENCY),
                exchange_rate=str(rate) if rate is not None else None,
                custom_currency_code=entry.get('custom_currency_code', '') or '',
            )
        )
    return entries
