"""
Root conftest.py -- shared fixtures for all test levels.
"""
import os
import sys
import pytest

# Ensure chitfund is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.dirname(__file__))

os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["CHITFUND_ENV"] = "development"

from __mocks__.fixtures import make_customer_data, make_scheme_data


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "chitfund_test.db"


@pytest.fixture
def store(db_path):
    """A fresh, fully initialized store in a temp file."""
    from chitfund.database import open_store

    store = open_store(db_path)
    yield store
    store.close()


@pytest.fixture
def scheme(store):
    """A 12-month scheme starting January 2025 with prefix GS."""
    from chitfund.records import add_scheme

    return add_scheme(store, make_scheme_data())


@pytest.fixture
def add_customer(store):
    """Factory adding a customer with sensible defaults."""
    from chitfund import records

    def _add(**overrides):
        return records.add_customer(store, make_customer_data(**overrides))

    return _add
