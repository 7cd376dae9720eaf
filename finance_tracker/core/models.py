# finance_tracker/core/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Category(str, Enum):
    SALARY = "salary"
    OTHER = "other"
    ENTERTAINMENT = "entertainment"
    FOOD = "food"
    TRANSPORT = "transport"
    UTILITIES = "utilities"


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


CATEGORY_LABELS: Dict[Category, str] = {
    Category.FOOD: "Food",
    Category.TRANSPORT: "Transport",
    Category.SALARY: "Salary",
    Category.UTILITIES: "Utilities",
    Category.ENTERTAINMENT: "Entertainment",
    Category.OTHER: "Other",
}


def category_label(category) -> str:
    """Human-readable label for a category (falls back to the raw value)."""
    try:
        return CATEGORY_LABELS[Category(category)]
    except ValueError:
        return str(category)


@dataclass(frozen=True)
class TransactionData:
    """Create/update payload. ``date`` is UTC nanoseconds, ``amount`` is paise."""
    date: int
    amount: int
    transaction_type: TransactionType
    category: Category
    description: str = ""


@dataclass(frozen=True)
class Transaction:
    transaction_id: int
    date: int
    amount: int
    transaction_type: TransactionType
    category: Category
    description: str = ""

    @classmethod
    def from_data(cls, transaction_id: int, data: TransactionData) -> "Transaction":
        return cls(
            transaction_id=transaction_id,
            date=data.date,
            amount=data.amount,
            transaction_type=data.transaction_type,
            category=data.category,
            description=data.description,
        )

    @property
    def data(self) -> TransactionData:
        return TransactionData(
            date=self.date,
            amount=self.amount,
            transaction_type=self.transaction_type,
            category=self.category,
            description=self.description,
        )


# Breakdowns always cover the full category set, in declaration order.
CategoryBreakdown = Dict[Category, int]


def empty_breakdown() -> CategoryBreakdown:
    return {category: 0 for category in Category}


@dataclass(frozen=True)
class MonthlySummary:
    year: int
    month: int
    income: int = 0
    expense: int = 0


@dataclass(frozen=True)
class CategoryShare:
    category: Category
    amount: int
    percentage: float


@dataclass(frozen=True)
class Totals:
    income: int
    expense: int
    net: int


@dataclass
class Report:
    monthly_summaries: List[MonthlySummary] = field(default_factory=list)
    category_breakdowns: List[CategoryBreakdown] = field(default_factory=list)


@dataclass(frozen=True)
class UserProfile:
    name: str
