"""
Shared test fixtures -- payload builders for unit and integration tests.
"""

# ── Scheme fixtures ──────────────────────────────────────────────────

def make_scheme_data(
    name="Gold Savings 2025",
    prefix="GS",
    start_date="2025-01-01",
    duration=12,
    amounts=None,
):
    return {
        "name": name,
        "prefix": prefix,
        "start_date": start_date,
        "duration": duration,
        "amounts": amounts if amounts is not None else [1000] * duration,
    }


# ── Customer fixtures ────────────────────────────────────────────────

def make_customer_data(
    name="Lakshmi Narayanan",
    phone="9876543210",
    address="12 Temple Street, Madurai",
    start_date="2025-01-05",
    monthly_amount=1000,
    scheme_id=None,
    customer_code=None,
):
    data = {
        "name": name,
        "phone": phone,
        "address": address,
        "start_date": start_date,
        "monthly_amount": monthly_amount,
    }
    if scheme_id is not None:
        data["scheme_id"] = scheme_id
    if customer_code is not None:
        data["customer_code"] = customer_code
    return data


# ── Payment fixtures ─────────────────────────────────────────────────

def make_payment_data(
    customer_id,
    amount=1000,
    payment_date="2025-03-10",
    month_year=None,
    payment_method="cash",
    scheme_id=None,
    transaction_id=None,
    notes=None,
):
    data = {
        "customer_id": customer_id,
        "amount": amount,
        "payment_date": payment_date,
        "payment_method": payment_method,
        "transaction_id": transaction_id,
        "notes": notes,
    }
    if month_year is not None:
        data["month_year"] = month_year
    if scheme_id is not None:
        data["scheme_id"] = scheme_id
    return data


# ── Winner fixtures ──────────────────────────────────────────────────

def make_winner_data(
    customer_id,
    scheme_id,
    month_year="2025-03",
    gold_rate=6200,
    winning_amount=5000,
    position=1,
):
    return {
        "customer_id": customer_id,
        "scheme_id": scheme_id,
        "month_year": month_year,
        "gold_rate": gold_rate,
        "winning_amount": winning_amount,
        "position": position,
    }


# ── Legacy store ─────────────────────────────────────────────────────

# Tables as they were before customer codes and scheme references existed.
LEGACY_SCHEMA = (
    """CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL,
        role TEXT DEFAULT 'admin',
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        last_login DATETIME,
        is_active BOOLEAN DEFAULT 1
    )""",
    """CREATE TABLE customers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        phone TEXT NOT NULL,
        address TEXT NOT NULL,
        start_date DATE NOT NULL,
        monthly_amount DECIMAL(10,2) NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )""",
    """CREATE TABLE payments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL,
        amount DECIMAL(10,2) NOT NULL,
        payment_date DATE NOT NULL,
        month_year TEXT NOT NULL,
        payment_method TEXT NOT NULL,
        transaction_id TEXT,
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )""",
    """CREATE TABLE winners (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL,
        month_year TEXT NOT NULL,
        gold_rate DECIMAL(10,2) NOT NULL,
        winning_amount DECIMAL(10,2) NOT NULL,
        position INTEGER NOT NULL,
        is_delivered BOOLEAN DEFAULT 0,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        UNIQUE(customer_id, month_year)
    )""",
)

LEGACY_CUSTOMERS = (
    ("Ravi Kumar", "9000000001", "Anna Nagar", "2023-06-01", 500),
    ("Meena Devi", "9000000002", "T Nagar", "2023-06-03", 750),
    ("Arjun Das", "9000000003", "Adyar", "2023-07-11", 1000),
)


def build_legacy_store(path):
    """Create a pre-migration database file with three customers."""
    import sqlite3

    conn = sqlite3.connect(str(path))
    try:
        for statement in LEGACY_SCHEMA:
            conn.execute(statement)
        conn.executemany(
            "INSERT INTO customers (name, phone, address, start_date, monthly_amount) VALUES (?, ?, ?, ?, ?)",
            LEGACY_CUSTOMERS,
        )
        conn.execute(
            "INSERT INTO payments (customer_id, amount, payment_date, month_year, payment_method) "
            "VALUES (1, 500, '2023-06-05', '2023-06', 'cash')"
        )
        conn.commit()
    finally:
        conn.close()
    return path
