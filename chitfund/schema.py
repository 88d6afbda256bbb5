"""
Schema creation and additive migrations.

Tables are created if absent; existing stores are brought forward by an
ordered list of column-adding migrations. Each step carries a version number
and a guard that inspects the live table, so re-running the chain against a
migrated store changes nothing.
"""
import logging
from collections import namedtuple

from chitfund import config
from chitfund.auth import hash_password
from chitfund.codes import backfill_code
from chitfund.exceptions import MigrationError

logger = logging.getLogger(__name__)

TABLES = ("users", "schemes", "customers", "payments", "winners", "deliveries")

CREATE_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL,
        role TEXT DEFAULT 'admin',
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        last_login DATETIME,
        is_active BOOLEAN DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS schemes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        prefix TEXT UNIQUE NOT NULL,
        start_date DATE NOT NULL,
        duration INTEGER NOT NULL,
        amounts TEXT NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS customers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        scheme_id INTEGER,
        customer_code TEXT,
        name TEXT NOT NULL,
        phone TEXT NOT NULL,
        address TEXT NOT NULL,
        start_date DATE NOT NULL,
        monthly_amount DECIMAL(10,2) NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (scheme_id) REFERENCES schemes (id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS payments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL,
        scheme_id INTEGER,
        amount DECIMAL(10,2) NOT NULL,
        payment_date DATE NOT NULL,
        month_year TEXT NOT NULL,
        payment_method TEXT NOT NULL,
        transaction_id TEXT,
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (customer_id) REFERENCES customers (id) ON DELETE CASCADE,
        FOREIGN KEY (scheme_id) REFERENCES schemes (id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS winners (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL,
        scheme_id INTEGER,
        month_year TEXT NOT NULL,
        gold_rate DECIMAL(10,2) NOT NULL,
        winning_amount DECIMAL(10,2) NOT NULL,
        position INTEGER NOT NULL,
        is_delivered BOOLEAN DEFAULT 0,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (customer_id) REFERENCES customers (id) ON DELETE CASCADE,
        FOREIGN KEY (scheme_id) REFERENCES schemes (id) ON DELETE CASCADE,
        UNIQUE(customer_id, month_year)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS deliveries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        winner_id INTEGER NOT NULL,
        bill_number TEXT NOT NULL,
        amount DECIMAL(10,2) NOT NULL,
        delivery_date DATETIME DEFAULT CURRENT_TIMESTAMP,
        notes TEXT,
        FOREIGN KEY (winner_id) REFERENCES winners (id) ON DELETE CASCADE
    )
    """,
)

Migration = namedtuple("Migration", ["version", "table", "column", "ddl", "after"])


def table_columns(store, table: str) -> list:
    """Column names of a table as reported by PRAGMA table_info."""
    return [row["name"] for row in store.fetchall(f"PRAGMA table_info({table})")]


def schema_version(store) -> int:
    return store.scalar("PRAGMA user_version") or 0


def _backfill_customer_codes(store, prefix):
    rows = store.fetchall(
        "SELECT id FROM customers WHERE customer_code IS NULL OR customer_code = '' ORDER BY id"
    )
    if not rows:
        logger.info("No customers need code generation")
        return

    logger.info(f"Generating codes for {len(rows)} existing customers")
    for index, row in enumerate(rows, start=1):
        store.execute(
            "UPDATE customers SET customer_code = ? WHERE id = ?",
            (backfill_code(prefix, index), row["id"]),
        )


# Order matters: customer codes are backfilled before anything depends on them.
MIGRATIONS = (
    Migration(1, "customers", "customer_code",
              "ALTER TABLE customers ADD COLUMN customer_code TEXT",
              _backfill_customer_codes),
    Migration(2, "customers", "scheme_id",
              "ALTER TABLE customers ADD COLUMN scheme_id INTEGER", None),
    Migration(3, "payments", "scheme_id",
              "ALTER TABLE payments ADD COLUMN scheme_id INTEGER", None),
    Migration(4, "winners", "scheme_id",
              "ALTER TABLE winners ADD COLUMN scheme_id INTEGER", None),
)

LATEST_VERSION = MIGRATIONS[-1].version


def pending_migrations(store) -> list:
    """Migrations whose column is still missing from the live table."""
    return [m for m in MIGRATIONS if m.column not in table_columns(store, m.table)]


def run_migrations(store, code_prefix: str = None) -> list:
    """
    Apply every pending migration in order inside one transaction.
    Returns the versions applied. Raises MigrationError on any failure,
    leaving the store as it was.
    """
    prefix = code_prefix or config.CUSTOMER_CODE_PREFIX
    applied = []
    try:
        with store.transaction():
            for migration in MIGRATIONS:
                if migration.column in table_columns(store, migration.table):
                    logger.debug(f"{migration.table}.{migration.column} already exists")
                    continue
                logger.info(f"Migration {migration.version}: adding {migration.table}.{migration.column}")
                store.execute(migration.ddl)
                if migration.after:
                    migration.after(store, prefix)
                applied.append(migration.version)

            if schema_version(store) < LATEST_VERSION:
                store.execute(f"PRAGMA user_version = {LATEST_VERSION}")
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise MigrationError(f"Schema migration failed: {e}") from e

    return applied


def seed_default_admin(store) -> bool:
    """
    Create the bootstrap admin account if its username is absent.

    This exists so a fresh desktop install can be logged into at all; the
    credentials are public defaults and must be changed after first login.
    """
    username = config.DEFAULT_ADMIN_USERNAME
    if store.fetchone("SELECT id FROM users WHERE username = ?", (username,)):
        logger.info("Default admin user already exists")
        return False

    store.execute(
        "INSERT INTO users (username, password_hash, email, role) VALUES (?, ?, ?, ?)",
        (username, hash_password(config.DEFAULT_ADMIN_PASSWORD), config.DEFAULT_ADMIN_EMAIL, 'admin'),
    )
    logger.warning(f"Created default admin user '{username}'; change its password")
    return True


def initialize_schema(store, code_prefix: str = None):
    """Create tables, run migrations and seed the admin account."""
    try:
        with store.transaction():
            for statement in CREATE_STATEMENTS:
                store.execute(statement)
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        raise MigrationError(f"Could not create tables: {e}") from e

    logger.info("Database tables created successfully")
    run_migrations(store, code_prefix)
    seed_default_admin(store)
