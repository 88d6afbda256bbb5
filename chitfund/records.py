"""
Record store: customers, schemes, payments and winners.
Every add validates its input first and returns the persisted row.
"""
import json
import logging
from datetime import date
from typing import Optional

from chitfund.codes import next_customer_code, normalize_customer_code
from chitfund.exceptions import ConstraintError, NotFoundError, ValidationError
from chitfund.validation import (
    optional_text,
    parse_iso_date,
    require_amounts,
    require_date,
    require_month_year,
    require_positive,
    require_positive_int,
    require_text,
    validate_customer_code_format,
    validate_phone,
    validate_prefix,
)

logger = logging.getLogger(__name__)

PAYMENT_SELECT = """
    SELECT p.*, c.name AS customer_name, c.customer_code
    FROM payments p
    LEFT JOIN customers c ON p.customer_id = c.id
"""

WINNER_SELECT = """
    SELECT w.*, c.name AS customer_name, c.customer_code,
           COALESCE(SUM(d.amount), 0) AS delivered_amount,
           (w.winning_amount - COALESCE(SUM(d.amount), 0)) AS remaining_balance
    FROM winners w
    LEFT JOIN customers c ON w.customer_id = c.id
    LEFT JOIN deliveries d ON w.id = d.winner_id
"""


def _require_data(data, entity: str) -> dict:
    if not isinstance(data, dict):
        raise ValidationError(entity, f"{entity} data is required and must be an object")
    return data


def _optional_id(data: dict, field: str) -> Optional[int]:
    if data.get(field) in (None, ""):
        return None
    return require_positive_int(data, field)


# ── Customers ────────────────────────────────────────────────────────

def get_customer(store, customer_id: int) -> dict:
    row = store.fetchone("SELECT * FROM customers WHERE id = ?", (customer_id,))
    if not row:
        raise NotFoundError(f"Customer {customer_id} not found")
    return row


def get_customer_by_code(store, customer_code: str) -> Optional[dict]:
    return store.fetchone("SELECT * FROM customers WHERE customer_code = ?", (customer_code,))


def get_customer_by_phone(store, phone: str) -> Optional[dict]:
    return store.fetchone("SELECT * FROM customers WHERE phone = ?", (phone,))


def list_customers(store, scheme_id: int = None) -> list:
    """All customers, or those of one scheme, newest first."""
    if scheme_id:
        return store.fetchall(
            "SELECT * FROM customers WHERE scheme_id = ? ORDER BY created_at DESC, id DESC",
            (scheme_id,),
        )
    return store.fetchall("SELECT * FROM customers ORDER BY created_at DESC, id DESC")


def customer_code_exists(store, customer_code: str) -> bool:
    row = store.fetchone("SELECT id FROM customers WHERE customer_code = ?", (customer_code,))
    return row is not None


def validate_customer_code(store, customer_code: str) -> dict:
    """
    Check a proposed code against existing ones, ignoring whitespace and
    case, so "GD7 001" and "gd7001" count as the same code.
    """
    customer_code = require_text({"customer_code": customer_code}, "customer_code")
    wanted = normalize_customer_code(customer_code)
    codes = store.fetchall("SELECT customer_code FROM customers WHERE customer_code IS NOT NULL")
    exists = any(normalize_customer_code(row["customer_code"]) == wanted for row in codes)
    return {"exists": exists, "valid": not exists}


def add_customer(store, data: dict, today: date = None) -> dict:
    """
    Insert a customer. Without a client-supplied code the next one is
    generated, scoped to the customer's scheme when it has one; generation
    and insert share one immediate transaction.
    """
    data = _require_data(data, "customer")
    name = require_text(data, "name")
    phone = validate_phone(require_text(data, "phone"))
    address = require_text(data, "address")
    start_date = require_date(data, "start_date", allow_future=False, today=today)
    monthly_amount = require_positive(data, "monthly_amount")
    scheme_id = _optional_id(data, "scheme_id")

    supplied_code = optional_text(data, "customer_code")
    if supplied_code:
        supplied_code = validate_customer_code_format(supplied_code)

    with store.transaction(immediate=True):
        if scheme_id is not None:
            get_scheme(store, scheme_id)

        customer_code = supplied_code or next_customer_code(store, scheme_id)
        if validate_customer_code(store, customer_code)["exists"]:
            raise ConstraintError(f"Customer code {customer_code} already exists")

        cursor = store.execute(
            """INSERT INTO customers
               (customer_code, name, phone, address, start_date, monthly_amount, scheme_id)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (customer_code, name, phone, address, start_date, monthly_amount, scheme_id),
        )
        customer_id = cursor.lastrowid

    logger.info(f"Customer {customer_id} added with code {customer_code}")
    return get_customer(store, customer_id)


# ── Schemes ──────────────────────────────────────────────────────────

def _scheme_from_row(row: dict) -> dict:
    row["amounts"] = json.loads(row["amounts"])
    return row


def _scheme_fields(data: dict) -> tuple:
    data = _require_data(data, "scheme")
    name = require_text(data, "name")
    prefix = validate_prefix(require_text(data, "prefix"))
    start_date = require_date(data, "start_date")
    duration = require_positive_int(data, "duration")
    amounts = require_amounts(data.get("amounts"), duration)
    return name, prefix, start_date, duration, json.dumps(amounts)


def month_sequence(start_date: str, count: int) -> list:
    """YYYY-MM tags for count consecutive months beginning at start_date."""
    start = parse_iso_date(start_date, "start_date")
    months = []
    for offset in range(count):
        years, month_index = divmod(start.month - 1 + offset, 12)
        months.append(f"{start.year + years:04d}-{month_index + 1:02d}")
    return months


def scheme_months(scheme: dict) -> list:
    return month_sequence(scheme["start_date"], scheme["duration"])


def get_scheme(store, scheme_id: int) -> dict:
    row = store.fetchone("SELECT * FROM schemes WHERE id = ?", (scheme_id,))
    if not row:
        raise NotFoundError(f"Scheme {scheme_id} not found")
    return _scheme_from_row(row)


def list_schemes(store) -> list:
    rows = store.fetchall("SELECT * FROM schemes ORDER BY created_at DESC, id DESC")
    return [_scheme_from_row(row) for row in rows]


def add_scheme(store, data: dict) -> dict:
    fields = _scheme_fields(data)
    cursor = store.execute(
        "INSERT INTO schemes (name, prefix, start_date, duration, amounts) VALUES (?, ?, ?, ?, ?)",
        fields,
    )
    logger.info(f"Scheme {cursor.lastrowid} added with prefix {fields[1]}")
    return get_scheme(store, cursor.lastrowid)


def update_scheme(store, scheme_id: int, data: dict) -> dict:
    get_scheme(store, scheme_id)
    fields = _scheme_fields(data)
    store.execute(
        """UPDATE schemes
           SET name = ?, prefix = ?, start_date = ?, duration = ?, amounts = ?,
               updated_at = CURRENT_TIMESTAMP
           WHERE id = ?""",
        fields + (scheme_id,),
    )
    logger.info(f"Scheme {scheme_id} updated")
    return get_scheme(store, scheme_id)


def delete_scheme(store, scheme_id: int) -> dict:
    """
    Delete a scheme with everything that hangs off it, all or nothing.
    Raises NotFoundError when the scheme does not exist.
    """
    owned = "scheme_id = ? OR customer_id IN (SELECT id FROM customers WHERE scheme_id = ?)"
    with store.transaction():
        get_scheme(store, scheme_id)
        deleted = {}
        deleted["deliveries"] = store.execute(
            f"DELETE FROM deliveries WHERE winner_id IN (SELECT id FROM winners WHERE {owned})",
            (scheme_id, scheme_id),
        ).rowcount
        deleted["payments"] = store.execute(
            f"DELETE FROM payments WHERE {owned}", (scheme_id, scheme_id)
        ).rowcount
        deleted["winners"] = store.execute(
            f"DELETE FROM winners WHERE {owned}", (scheme_id, scheme_id)
        ).rowcount
        deleted["customers"] = store.execute(
            "DELETE FROM customers WHERE scheme_id = ?", (scheme_id,)
        ).rowcount
        store.execute("DELETE FROM schemes WHERE id = ?", (scheme_id,))

    logger.info(f"Scheme {scheme_id} and all related data deleted: {deleted}")
    return {"id": scheme_id, "deleted": deleted}


# ── Payments ─────────────────────────────────────────────────────────

def get_payment(store, payment_id: int) -> dict:
    row = store.fetchone(PAYMENT_SELECT + " WHERE p.id = ?", (payment_id,))
    if not row:
        raise NotFoundError(f"Payment {payment_id} not found")
    return row


def add_payment(store, data: dict) -> dict:
    """
    Record a payment. month_year defaults to the payment date's month and
    scheme_id to the customer's scheme.
    """
    data = _require_data(data, "payment")
    customer_id = require_positive_int(data, "customer_id")
    amount = require_positive(data, "amount")
    payment_date = require_date(data, "payment_date")
    month_year = require_month_year(data.get("month_year") or payment_date[:7])
    payment_method = require_text(data, "payment_method")
    transaction_id = optional_text(data, "transaction_id")
    notes = optional_text(data, "notes")

    customer = get_customer(store, customer_id)
    scheme_id = _optional_id(data, "scheme_id") or customer["scheme_id"]
    if scheme_id is not None:
        get_scheme(store, scheme_id)
        if customer["scheme_id"] is not None and customer["scheme_id"] != scheme_id:
            raise ValidationError("scheme_id", f"Customer {customer_id} does not belong to scheme {scheme_id}")

    # Not enforced: a second payment for the same month may be a correction
    if store.fetchone(
        "SELECT id FROM payments WHERE customer_id = ? AND month_year = ?",
        (customer_id, month_year),
    ):
        logger.warning(f"Customer {customer_id} already has a payment for {month_year}")

    cursor = store.execute(
        """INSERT INTO payments
           (customer_id, scheme_id, amount, payment_date, month_year, payment_method, transaction_id, notes)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (customer_id, scheme_id, amount, payment_date, month_year, payment_method, transaction_id, notes),
    )
    logger.info(f"Payment {cursor.lastrowid} recorded for customer {customer_id} ({month_year})")
    return get_payment(store, cursor.lastrowid)


def list_payments(store, scheme_id: int = None) -> list:
    if scheme_id:
        return store.fetchall(
            PAYMENT_SELECT + " WHERE p.scheme_id = ? ORDER BY p.payment_date DESC, p.id DESC",
            (scheme_id,),
        )
    return store.fetchall(PAYMENT_SELECT + " ORDER BY p.payment_date DESC, p.id DESC")


def list_customer_payments(store, customer_id: int) -> list:
    get_customer(store, customer_id)
    return store.fetchall(
        PAYMENT_SELECT + " WHERE p.customer_id = ? ORDER BY p.payment_date DESC, p.id DESC",
        (customer_id,),
    )


def list_payments_by_date(store, payment_date: str, scheme_id: int = None) -> list:
    day = require_date({"payment_date": payment_date}, "payment_date")
    query = PAYMENT_SELECT + " WHERE DATE(p.payment_date) = DATE(?)"
    params = [day]
    if scheme_id:
        query += " AND p.scheme_id = ?"
        params.append(scheme_id)
    return store.fetchall(query + " ORDER BY p.payment_date DESC, p.id DESC", params)


def list_payments_by_date_range(store, start_date: str, end_date: str, scheme_id: int = None) -> list:
    start = require_date({"start_date": start_date}, "start_date")
    end = require_date({"end_date": end_date}, "end_date")
    if start > end:
        raise ValidationError("end_date", "end_date must not be before start_date")

    query = PAYMENT_SELECT + " WHERE DATE(p.payment_date) >= DATE(?) AND DATE(p.payment_date) <= DATE(?)"
    params = [start, end]
    if scheme_id:
        query += " AND p.scheme_id = ?"
        params.append(scheme_id)
    return store.fetchall(query + " ORDER BY p.payment_date DESC, p.id DESC", params)


# ── Winners ──────────────────────────────────────────────────────────

def _winner_from_row(row: dict) -> dict:
    row["is_delivered"] = bool(row["is_delivered"])
    return row


def get_winner(store, winner_id: int) -> dict:
    row = store.fetchone(WINNER_SELECT + " WHERE w.id = ? GROUP BY w.id", (winner_id,))
    if not row:
        raise NotFoundError(f"Winner {winner_id} not found")
    return _winner_from_row(row)


def list_winners(store, scheme_id: int = None) -> list:
    if scheme_id:
        rows = store.fetchall(
            WINNER_SELECT + " WHERE w.scheme_id = ? GROUP BY w.id ORDER BY w.created_at DESC, w.id DESC",
            (scheme_id,),
        )
    else:
        rows = store.fetchall(WINNER_SELECT + " GROUP BY w.id ORDER BY w.created_at DESC, w.id DESC")
    return [_winner_from_row(row) for row in rows]


def add_winner(store, data: dict) -> dict:
    """Record a draw winner; a customer wins at most once per month."""
    data = _require_data(data, "winner")
    customer_id = require_positive_int(data, "customer_id")
    scheme_id = require_positive_int(data, "scheme_id")
    month_year = require_month_year(data.get("month_year"))
    gold_rate = require_positive(data, "gold_rate")
    winning_amount = require_positive(data, "winning_amount")
    position = require_positive_int(data, "position")

    scheme = get_scheme(store, scheme_id)
    customer = get_customer(store, customer_id)
    if customer["scheme_id"] != scheme_id:
        raise ValidationError("customer_id", f"Customer {customer_id} does not belong to scheme {scheme_id}")
    if month_year not in scheme_months(scheme):
        raise ValidationError("month_year", f"{month_year} is outside the months of scheme {scheme['name']}")

    if store.fetchone(
        "SELECT id FROM winners WHERE customer_id = ? AND month_year = ?",
        (customer_id, month_year),
    ):
        raise ConstraintError(f"Customer {customer['customer_code']} already won in {month_year}")

    cursor = store.execute(
        """INSERT INTO winners (customer_id, scheme_id, month_year, gold_rate, winning_amount, position)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (customer_id, scheme_id, month_year, gold_rate, winning_amount, position),
    )
    logger.info(f"Winner {cursor.lastrowid} added: customer {customer_id}, {month_year}")
    return get_winner(store, cursor.lastrowid)


def available_months(store, scheme_id: int = None) -> list:
    """Scheme months that have no winner yet; empty without a scheme."""
    if not scheme_id:
        return []
    scheme = get_scheme(store, scheme_id)
    taken = {
        row["month_year"]
        for row in store.fetchall("SELECT DISTINCT month_year FROM winners WHERE scheme_id = ?", (scheme_id,))
    }
    return [month for month in scheme_months(scheme) if month not in taken]


# ── Maintenance ──────────────────────────────────────────────────────

def clear_all_data(store) -> dict:
    """
    Wipe payments, customers, deliveries and winners and restart their ids.
    Users and schemes are kept.
    """
    tables = ("payments", "customers", "deliveries", "winners")
    with store.transaction():
        # Counted up front: deleting customers cascades into winners and deliveries
        deleted = {table: store.scalar(f"SELECT COUNT(*) FROM {table}") for table in tables}
        for table in tables:
            store.execute(f"DELETE FROM {table}")
        store.execute(
            "DELETE FROM sqlite_sequence WHERE name IN (?, ?, ?, ?)", tables
        )

    logger.info(f"All data cleared: {deleted}")
    return deleted
