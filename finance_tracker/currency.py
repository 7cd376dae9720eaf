# finance_tracker/currency.py
"""Convert amounts entered in any currency into base-currency paise.

Only the converted amount is ever stored; the entered currency and rate
are dropped once the payload is built.
"""

from __future__ import annotations

from collections import namedtuple
from decimal import Decimal

from finance_tracker.core.errors import InvalidAmount, InvalidCurrencyCode, InvalidExchangeRate
from finance_tracker.money import (
    CURRENCY_SYMBOL,
    check_minor_units,
    parse_decimal,
    scale_minor_units,
    to_display_amount,
)

BASE_CURRENCY = "INR"
CUSTOM = "CUSTOM"

Currency = namedtuple("Currency", "code name symbol")

CURRENCIES = [
    Currency("INR", "Indian Rupee (₹)", CURRENCY_SYMBOL),
    Currency("USD", "US Dollar ($)", "$"),
    Currency("EUR", "Euro (€)", "€"),
    Currency("GBP", "British Pound (£)", "£"),
    Currency("JPY", "Japanese Yen (¥)", "¥"),
    Currency("AUD", "Australian Dollar (A$)", "A$"),
    Currency("CAD", "Canadian Dollar (C$)", "C$"),
    Currency("CHF", "Swiss Franc (CHF)", "CHF"),
    Currency("CNY", "Chinese Yuan (¥)", "¥"),
    Currency("AED", "UAE Dirham (د.إ)", "د.إ"),
]


def find_currency(code: str):
    code = (code or "").strip().upper()
    return next((c for c in CURRENCIES if c.code == code), None)


def _parse_amount(entered_amount) -> Decimal:
    amount = parse_decimal(entered_amount, InvalidAmount, "amount")
    if amount <= 0:
        raise InvalidAmount("Please enter a valid amount greater than 0")
    return amount


def _parse_rate(exchange_rate) -> Decimal:
    if exchange_rate is None or str(exchange_rate).strip() == "":
        raise InvalidExchangeRate("Please enter a valid exchange rate greater than 0")
    rate = parse_decimal(exchange_rate, InvalidExchangeRate, "exchange rate")
    if rate <= 0:
        raise InvalidExchangeRate("Please enter a valid exchange rate greater than 0")
    return rate


def is_base_currency(currency_code: str) -> bool:
    return ((currency_code or "").strip() or BASE_CURRENCY).upper() == BASE_CURRENCY


def normalize_amount(
    entered_amount,
    exchange_rate=None,
    currency_code: str = BASE_CURRENCY,
    custom_code: str = "",
) -> int:
    """Return ``round(entered_amount * exchange_rate * 100)`` in base paise.

    The rate is ignored for the base currency. A custom currency (``CUSTOM``)
    needs a non-blank *custom_code*; any other currency code is accepted as-is.
    """
    amount = _parse_amount(entered_amount)
    code = (currency_code or "").strip() or BASE_CURRENCY
    if code.upper() == CUSTOM and not (custom_code or "").strip():
        raise InvalidCurrencyCode("Please enter a currency code or name")

    if is_base_currency(code):
        rate = Decimal(1)
    else:
        rate = _parse_rate(exchange_rate)
    return check_minor_units(scale_minor_units(amount, rate))


def convert_preview(entered_amount, exchange_rate) -> str:
    """The ``≈ ₹8,350.00 INR`` hint shown next to a foreign amount."""
    paise = scale_minor_units(_parse_amount(entered_amount), _parse_rate(exchange_rate))
    return f"≈ {to_display_amount(paise)} {BASE_CURRENCY}"
