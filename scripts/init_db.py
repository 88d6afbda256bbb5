"""
Database initialization script.
Creates tables, applies pending migrations and seeds the admin account.
"""
import logging
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chitfund import config
from chitfund.database import Store
from chitfund.schema import LATEST_VERSION, initialize_schema, pending_migrations, schema_version


def init_database(database_path=None):
    """Bring the database file up to the current schema."""
    database_path = database_path or config.DATABASE_PATH
    print("=" * 60)
    print(f"{config.APP_NAME} - Database Initialization")
    print(f"Database: {database_path}")
    print("=" * 60)

    store = Store(database_path).open()
    try:
        initialize_schema(store)
        print(f"\nSchema version: {schema_version(store)} (latest {LATEST_VERSION})")
        remaining = pending_migrations(store)
        if remaining:
            print(f"Pending migrations: {[m.version for m in remaining]}")
        else:
            print("All migrations applied.")
    finally:
        store.close()

    print("=" * 60)


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL)
    init_database(sys.argv[1] if len(sys.argv) > 1 else None)
