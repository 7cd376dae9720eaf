# finance_tracker/money.py
"""Conversions between stored minor units (paise) and display amounts."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation

from finance_tracker.core.errors import InvalidAmount
from finance_tracker.core.models import TransactionType

CURRENCY_SYMBOL = "₹"
MINUS_SIGN = "−"
# Largest amount that stays exact as an IEEE double on JS clients.
MAX_AMOUNT = 2**53 - 1

_ONE = Decimal(1)
_HUNDRED = Decimal(100)
_STRIP_CHARS = (CURRENCY_SYMBOL, " ", "\u00a0")
# Commas only as digit-group separators: 1,234,567 or 12,34,567.
_GROUPED_NUMBER = re.compile(r"^[+-]?(?:\d{1,3}(?:,\d{3})+|\d{1,2}(?:,\d{2})*,\d{3})(?:\.\d*)?$")
_TOO_LARGE = f"Amount exceeds the supported maximum of {MAX_AMOUNT} paise"


def parse_decimal(value, error_cls=InvalidAmount, what="amount") -> Decimal:
    """Parse user input into a finite Decimal or raise *error_cls*.

    Commas are accepted as thousands (``1,234.50``) or lakh
    (``1,23,456.78``) separators; anything else, such as ``1,5``, is rejected.
    """
    if value is None or isinstance(value, bool):
        raise error_cls(f"Missing or invalid {what}: {value!r}")
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip()
        for ch in _STRIP_CHARS:
            text = text.replace(ch, "")
        if not text:
            raise error_cls(f"Missing {what}")
        if "," in text:
            if not _GROUPED_NUMBER.match(text):
                raise error_cls(f"Could not parse {what} '{value}'")
            text = text.replace(",", "")
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            raise error_cls(f"Could not parse {what} '{value}'") from None
    if not parsed.is_finite():
        raise error_cls(f"Could not parse {what} '{value}'")
    return parsed


def round_minor_units(value: Decimal) -> int:
    """Round a Decimal amount of minor units to an int, half-up."""
    try:
        return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))
    except DecimalException:
        raise InvalidAmount(_TOO_LARGE) from None


def scale_minor_units(amount: Decimal, rate: Decimal = _ONE) -> int:
    """Paise for ``amount * rate`` rupees, rounded half-up."""
    try:
        scaled = amount * rate * _HUNDRED
    except DecimalException:
        raise InvalidAmount(_TOO_LARGE) from None
    if scaled.copy_abs() > MAX_AMOUNT:
        raise InvalidAmount(_TOO_LARGE)
    return round_minor_units(scaled)


def check_minor_units(minor_units: int) -> int:
    if minor_units <= 0:
        raise InvalidAmount("Please enter a valid amount greater than 0")
    if minor_units > MAX_AMOUNT:
        raise InvalidAmount(_TOO_LARGE)
    return minor_units


def to_minor_units(display_amount) -> int:
    """Convert a rupee amount (e.g. ``"1,234.50"`` or ``Decimal("12.5")``) to paise."""
    amount = parse_decimal(display_amount)
    if amount <= 0:
        raise InvalidAmount("Please enter a valid amount greater than 0")
    return check_minor_units(scale_minor_units(amount))


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_amount(minor_units: int) -> str:
    """Plain two-decimal rendering, e.g. ``123456 -> "1234.56"``."""
    sign = "-" if minor_units < 0 else ""
    rupees, paise = divmod(abs(int(minor_units)), 100)
    return f"{sign}{rupees}.{paise:02d}"


def to_display_amount(minor_units: int, symbol: bool = True) -> str:
    """Render paise as en-IN currency, e.g. ``12345678 -> "₹1,23,456.78"``."""
    sign = "-" if minor_units < 0 else ""
    rupees, paise = divmod(abs(int(minor_units)), 100)
    prefix = CURRENCY_SYMBOL if symbol else ""
    return f"{sign}{prefix}{_group_indian(str(rupees))}.{paise:02d}"


def format_signed(minor_units: int, transaction_type) -> str:
    """``+₹100.00`` for income, ``−₹100.00`` for expense."""
    sign = "+" if TransactionType(transaction_type) is TransactionType.INCOME else MINUS_SIGN
    return f"{sign}{to_display_amount(abs(minor_units))}"


def format_net(minor_units: int) -> str:
    sign = "+" if minor_units >= 0 else MINUS_SIGN
    return f"{sign}{to_display_amount(abs(minor_units))}"
