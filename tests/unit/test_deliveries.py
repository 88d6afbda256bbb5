"""
Unit tests for chitfund/deliveries.py -- partial deliveries against a
winner's balance.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from chitfund import records
from chitfund.deliveries import add_delivery, list_deliveries, winner_balance
from chitfund.exceptions import BalanceExceededError, NotFoundError, ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from __mocks__.fixtures import make_winner_data

pytestmark = pytest.mark.unit


@pytest.fixture
def winner(store, scheme, add_customer):
    member = add_customer(scheme_id=scheme["id"])
    return records.add_winner(store, make_winner_data(member["id"], scheme["id"], winning_amount=5000))


# ── add_delivery ─────────────────────────────────────────────────────

class TestAddDelivery:
    def test_partial_delivery(self, store, winner):
        delivery = add_delivery(store, winner["id"], "BILL-001", 3000, "first instalment")
        assert delivery["amount"] == 3000
        assert delivery["bill_number"] == "BILL-001"
        assert delivery["notes"] == "first instalment"
        assert delivery["remaining_balance"] == 2000
        assert delivery["winner_delivered"] is False
        assert records.get_winner(store, winner["id"])["is_delivered"] is False

    def test_overdraw_rejected_with_remaining(self, store, winner):
        add_delivery(store, winner["id"], "BILL-001", 3000)
        with pytest.raises(BalanceExceededError) as exc:
            add_delivery(store, winner["id"], "BILL-002", 2500)

        assert exc.value.remaining == 2000
        assert str(exc.value) == (
            "Delivery amount (₹2500) exceeds remaining balance. Maximum allowed: ₹2000"
        )
        assert len(list_deliveries(store, winner["id"])) == 1

    def test_exact_remaining_marks_delivered(self, store, winner):
        add_delivery(store, winner["id"], "BILL-001", 3000)
        delivery = add_delivery(store, winner["id"], "BILL-002", 2000)

        assert delivery["remaining_balance"] == 0
        assert delivery["winner_delivered"] is True
        refreshed = records.get_winner(store, winner["id"])
        assert refreshed["is_delivered"] is True
        assert refreshed["delivered_amount"] == 5000

    def test_nothing_left_after_full_delivery(self, store, winner):
        add_delivery(store, winner["id"], "BILL-001", 5000)
        with pytest.raises(BalanceExceededError) as exc:
            add_delivery(store, winner["id"], "BILL-002", 1)
        assert exc.value.remaining == 0

    def test_fractional_amounts_do_not_drift(self, store, winner):
        for bill in range(10):
            add_delivery(store, winner["id"], f"B-{bill}", 0.1)
        balance = winner_balance(store, winner["id"])
        assert balance["remaining_balance"] == 4999

    def test_unknown_winner(self, store):
        with pytest.raises(NotFoundError):
            add_delivery(store, 99, "BILL-001", 100)

    @pytest.mark.parametrize("bill_number,amount", [
        ("", 100),
        ("   ", 100),
        ("BILL-1", 0),
        ("BILL-1", -50),
        ("BILL-1", "lots"),
        ("BILL-1", "inf"),
        ("BILL-1", "1e999"),
        ("BILL-1", float("nan")),
    ])
    def test_invalid_input(self, store, winner, bill_number, amount):
        with pytest.raises(ValidationError):
            add_delivery(store, winner["id"], bill_number, amount)
        assert list_deliveries(store, winner["id"]) == []

    def test_rejection_leaves_no_open_transaction(self, store, winner):
        with pytest.raises(BalanceExceededError):
            add_delivery(store, winner["id"], "BILL-001", 6000)
        assert not store.in_transaction
        assert not store.conn.in_transaction


# ── Balance and listing ──────────────────────────────────────────────

class TestBalance:
    def test_fresh_winner_balance(self, store, winner):
        assert winner_balance(store, winner["id"]) == {
            "winner_id": winner["id"],
            "winning_amount": 5000,
            "delivered_amount": 0,
            "remaining_balance": 5000,
            "is_delivered": False,
        }

    def test_missing_winner_balance(self, store):
        with pytest.raises(NotFoundError):
            winner_balance(store, 7)

    def test_list_newest_first(self, store, winner):
        first = add_delivery(store, winner["id"], "BILL-001", 1000)
        second = add_delivery(store, winner["id"], "BILL-002", 1000)
        assert [d["id"] for d in list_deliveries(store, winner["id"])] == [second["id"], first["id"]]

    def test_list_for_missing_winner(self, store):
        with pytest.raises(NotFoundError):
            list_deliveries(store, 3)
