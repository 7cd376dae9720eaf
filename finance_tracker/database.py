import logging
import sqlite3
from pathlib import Path
from typing import List, Optional

from finance_tracker.aggregation import (
    build_report,
    compute_category_breakdown,
    compute_monthly_stats,
)
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

logger = logging.getLogger(__name__)

_COLUMNS = "id, date, amount, transaction_type, category, description"


def _init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner TEXT NOT NULL,
            date INTEGER NOT NULL CHECK (date >= 0),
            amount INTEGER NOT NULL CHECK (amount > 0),
            transaction_type TEXT NOT NULL,
            category TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT ''
        );
        CREATE INDEX IF NOT EXISTS idx_transactions_owner_date
            ON transactions (owner, date);
        CREATE TABLE IF NOT EXISTS profiles (
            principal TEXT PRIMARY KEY,
            name TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS roles (
            principal TEXT PRIMARY KEY,
            role TEXT NOT NULL
        );
        """
    )
    conn.commit()


def _connect(db_path: str) -> sqlite3.Connection:
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    _init_db(conn)
    return conn


def _row_to_transaction(row) -> Transaction:
    return Transaction(
        transaction_id=int(row[0]),
        date=int(row[1]),
        amount=int(row[2]),
        transaction_type=TransactionType(row[3]),
        category=Category(row[4]),
        description=row[5] or "",
    )


def _data_params(data: TransactionData) -> tuple:
    return (
        int(data.date),
        int(data.amount),
        TransactionType(data.transaction_type).value,
        Category(data.category).value,
        data.description or "",
    )


# ---------------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------------

def _role_of(conn: sqlite3.Connection, principal: str) -> Optional[UserRole]:
    row = conn.execute("SELECT role FROM roles WHERE principal = ?", (principal,)).fetchone()
    return UserRole(row[0]) if row else None


def _register(conn: sqlite3.Connection, principal: str) -> UserRole:
    """Return the caller's role, registering unknown callers.

    The first principal ever seen becomes admin, later ones are users.
    """
    if not principal:
        raise PermissionError("Unauthorized: anonymous callers cannot access the ledger")
    role = _role_of(conn, principal)
    if role is not None:
        return role
    has_admin = conn.execute("SELECT 1 FROM roles LIMIT 1").fetchone() is not None
    role = UserRole.USER if has_admin else UserRole.ADMIN
    conn.execute("INSERT INTO roles (principal, role) VALUES (?, ?)", (principal, role.value))
    conn.commit()
    logger.info("Registered principal %s as %s", principal, role.value)
    return role


def _require_user(conn: sqlite3.Connection, principal: str) -> None:
    if _register(conn, principal) is UserRole.GUEST:
        raise PermissionError("Unauthorized: only users can manage transactions")


def assign_user_role(db_path: str, caller: str, user: str, role: UserRole) -> None:
    """Set *user*'s role. Only admins may assign roles."""
    conn = _connect(db_path)
    try:
        if _register(conn, caller) is not UserRole.ADMIN:
            raise PermissionError("Unauthorized: only admins can assign user roles")
        conn.execute(
            "INSERT INTO roles (principal, role) VALUES (?, ?) "
            "ON CONFLICT(principal) DO UPDATE SET role = excluded.role",
            (user, UserRole(role).value),
        )
        conn.commit()
        logger.info("Principal %s assigned role %s to %s", caller, UserRole(role).value, user)
    finally:
        conn.close()


def get_caller_user_role(db_path: str, caller: str) -> UserRole:
    conn = _connect(db_path)
    try:
        return _register(conn, caller)
    finally:
        conn.close()


def is_caller_admin(db_path: str, caller: str) -> bool:
    return get_caller_user_role(db_path, caller) is UserRole.ADMIN


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

def _load_profile(conn: sqlite3.Connection, principal: str) -> Optional[UserProfile]:
    row = conn.execute("SELECT name FROM profiles WHERE principal = ?", (principal,)).fetchone()
    return UserProfile(name=row[0]) if row else None


def get_caller_user_profile(db_path: str, caller: str) -> Optional[UserProfile]:
    """Return the caller's profile, or None when onboarding is still needed."""
    conn = _connect(db_path)
    try:
        _require_user(conn, caller)
        return _load_profile(conn, caller)
    finally:
        conn.close()


def save_caller_user_profile(db_path: str, caller: str, profile: UserProfile) -> None:
    conn = _connect(db_path)
    try:
        _require_user(conn, caller)
        conn.execute(
            "INSERT INTO profiles (principal, name) VALUES (?, ?) "
            "ON CONFLICT(principal) DO UPDATE SET name = excluded.name",
            (caller, profile.name),
        )
        conn.commit()
    finally:
        conn.close()


def get_user_profile(db_path: str, caller: str, user: str) -> Optional[UserProfile]:
    """Profile of another principal; callers may only read their own unless admin."""
    conn = _connect(db_path)
    try:
        role = _register(conn, caller)
        if caller != user and role is not UserRole.ADMIN:
            raise PermissionError("Unauthorized: can only view your own profile")
        return _load_profile(conn, user)
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

def add_transaction(db_path: str, caller: str, data: TransactionData) -> int:
    """Persist a new transaction for *caller* and return its id."""
    conn = _connect(db_path)
    try:
        _require_user(conn, caller)
        cur = conn.execute(
            """
            INSERT INTO transactions
            (owner, date, amount, transaction_type, category, description)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (caller,) + _data_params(data),
        )
        conn.commit()
        transaction_id = int(cur.lastrowid)
        logger.info("Added transaction %d for %s", transaction_id, caller)
        return transaction_id
    finally:
        conn.close()


def _fetch_one(conn: sqlite3.Connection, caller: str, transaction_id: int):
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM transactions WHERE id = ? AND owner = ?",
        (int(transaction_id), caller),
    ).fetchone()
    if row is None:
        raise LookupError(f"Transaction not found: {transaction_id}")
    return row


def get_transaction(db_path: str, caller: str, transaction_id: int) -> Transaction:
    conn = _connect(db_path)
    try:
        _require_user(conn, caller)
        return _row_to_transaction(_fetch_one(conn, caller, transaction_id))
    finally:
        conn.close()


def update_transaction(db_path: str, caller: str, transaction_id: int, data: TransactionData) -> None:
    """Replace every field of an existing transaction. Last write wins."""
    conn = _connect(db_path)
    try:
        _require_user(conn, caller)
        _fetch_one(conn, caller, transaction_id)
        conn.execute(
            """
            UPDATE transactions
            SET date = ?, amount = ?, transaction_type = ?, category = ?, description = ?
            WHERE id = ? AND owner = ?
            """,
            _data_params(data) + (int(transaction_id), caller),
        )
        conn.commit()
        logger.info("Updated transaction %d for %s", transaction_id, caller)
    finally:
        conn.close()


def delete_transaction(db_path: str, caller: str, transaction_id: int) -> None:
    """Delete a transaction; deleting an unknown id is an error."""
    conn = _connect(db_path)
    try:
        _require_user(conn, caller)
        _fetch_one(conn, caller, transaction_id)
        conn.execute(
            "DELETE FROM transactions WHERE id = ? AND owner = ?",
            (int(transaction_id), caller),
        )
        conn.commit()
        logger.info("Deleted transaction %d for %s", transaction_id, caller)
    finally:
        conn.close()


def _build_filters(
    caller: str,
    start: Optional[int] = None,
    end: Optional[int] = None,
    category: Optional[Category] = None,
    transaction_type: Optional[TransactionType] = None,
) -> tuple:
    conditions = ["owner = ?"]
    params: list = [caller]
    if start is not None:
        conditions.append("date >= ?")
        params.append(int(start))
    if end is not None:
        conditions.append("date <= ?")
        params.append(int(end))
    if category is not None:
        conditions.append("category = ?")
        params.append(Category(category).value)
    if transaction_type is not None:
        conditions.append("transaction_type = ?")
        params.append(TransactionType(transaction_type).value)
    return " WHERE " + " AND ".join(conditions), params


def _query(db_path: str, caller: str, **filters) -> List[Transaction]:
    conn = _connect(db_path)
    try:
        _require_user(conn, caller)
        where, params = _build_filters(caller, **filters)
        rows = conn.execute(f"SELECT {_COLUMNS} FROM transactions{where}", params).fetchall()
        return [_row_to_transaction(r) for r in rows]
    finally:
        conn.close()


def get_user_transactions(db_path: str, caller: str) -> List[Transaction]:
    """All of the caller's transactions, in no particular order."""
    return _query(db_path, caller)


def get_transactions_by_category(db_path: str, caller: str, category: Category) -> List[Transaction]:
    return _query(db_path, caller, category=category)


def get_transactions_by_type(db_path: str, caller: str, transaction_type: TransactionType) -> List[Transaction]:
    return _query(db_path, caller, transaction_type=transaction_type)


def get_transactions_in_date_range(db_path: str, caller: str, start: int, end: int) -> List[Transaction]:
    return _query(db_path, caller, start=start, end=end)


def generate_report(db_path: str, caller: str, start: int, end: int) -> Report:
    return build_report(get_transactions_in_date_range(db_path, caller, start, end), start, end)


def get_category_stats(db_path: str, caller: str, start: int, end: int) -> CategoryBreakdown:
    return compute_category_breakdown(get_transactions_in_date_range(db_path, caller, start, end))


def get_monthly_stats(db_path: str, caller: str, month: int, year: int) -> MonthlySummary:
    return compute_monthly_stats(get_user_transactions(db_path, caller), month, year)
