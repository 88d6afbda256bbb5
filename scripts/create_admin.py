"""
Create an admin user, or reset the password of an existing one.

Usage: python scripts/create_admin.py USERNAME PASSWORD [EMAIL]
"""
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chitfund import config
from chitfund.auth import create_user, set_password
from chitfund.database import open_store


def create_admin_user(username, password, email=None, database_path=None):
    """Create the user, or reset its password if the username is taken."""
    store = open_store(database_path or config.DATABASE_PATH)
    try:
        existing = store.fetchone("SELECT id FROM users WHERE username = ?", (username,))
        if existing:
            set_password(store, username, password)
            print(f"Password updated for existing user: {username}")
            return

        email = email or f"{username}@localhost"
        create_user(store, username, password, email, role='admin')

        print("=" * 50)
        print("Admin user created successfully!")
        print("=" * 50)
        print(f"  Username: {username}")
        print(f"  Email: {email}")
        print("=" * 50)
    finally:
        store.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__.strip())
        sys.exit(1)
    create_admin_user(sys.argv[1], sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else None)
