"""
Balance engine: partial deliveries against a winner's winning amount.

The delivered total of a winner never exceeds its winning amount. The check
and the insert run in one BEGIN IMMEDIATE transaction, so two deliveries for
the same winner cannot both pass the check against the same stale total.
"""
import logging

from chitfund.exceptions import BalanceExceededError, NotFoundError
from chitfund.validation import format_money, optional_text, require_positive, require_positive_int, require_text

logger = logging.getLogger(__name__)

BALANCE_QUERY = """
    SELECT w.id, w.winning_amount, w.is_delivered,
           COALESCE(SUM(d.amount), 0) AS delivered_amount
    FROM winners w
    LEFT JOIN deliveries d ON w.id = d.winner_id
    WHERE w.id = ?
    GROUP BY w.id, w.winning_amount
"""


def _cents(amount) -> int:
    # Compare money in whole paise so float sums do not drift past the limit
    return round(float(amount) * 100)


def winner_balance(store, winner_id: int) -> dict:
    row = store.fetchone(BALANCE_QUERY, (winner_id,))
    if not row:
        raise NotFoundError(f"Winner {winner_id} not found")
    return {
        "winner_id": row["id"],
        "winning_amount": row["winning_amount"],
        "delivered_amount": row["delivered_amount"],
        "remaining_balance": (_cents(row["winning_amount"]) - _cents(row["delivered_amount"])) / 100,
        "is_delivered": bool(row["is_delivered"]),
    }


def add_delivery(store, winner_id, bill_number, amount, notes=None) -> dict:
    """
    Record a delivery for a winner.

    Raises:
        ValidationError: bad winner id, empty bill number or non-positive amount
        NotFoundError: winner does not exist
        BalanceExceededError: amount is more than the remaining balance;
            .remaining carries the most that can still be delivered
    """
    winner_id = require_positive_int({"winner_id": winner_id}, "winner_id")
    bill_number = require_text({"bill_number": bill_number}, "bill_number")
    amount = require_positive({"amount": amount}, "amount")
    notes = optional_text({"notes": notes}, "notes")

    with store.transaction(immediate=True):
        balance = winner_balance(store, winner_id)
        winning_cents = _cents(balance["winning_amount"])
        delivered_cents = _cents(balance["delivered_amount"])
        new_total_cents = delivered_cents + _cents(amount)

        if new_total_cents > winning_cents:
            remaining = (winning_cents - delivered_cents) / 100
            logger.warning(
                f"Delivery of {amount} rejected for winner {winner_id}: only {remaining} remaining"
            )
            raise BalanceExceededError(
                f"Delivery amount ({format_money(amount)}) exceeds remaining balance. "
                f"Maximum allowed: {format_money(remaining)}",
                remaining=remaining,
            )

        cursor = store.execute(
            "INSERT INTO deliveries (winner_id, bill_number, amount, notes) VALUES (?, ?, ?, ?)",
            (winner_id, bill_number, amount, notes),
        )
        delivery_id = cursor.lastrowid

        fully_delivered = new_total_cents >= winning_cents
        if fully_delivered:
            store.execute("UPDATE winners SET is_delivered = 1 WHERE id = ?", (winner_id,))

    logger.info(
        f"Delivery {delivery_id} added for winner {winner_id}: "
        f"{new_total_cents / 100} of {winning_cents / 100} delivered"
    )
    delivery = store.fetchone("SELECT * FROM deliveries WHERE id = ?", (delivery_id,))
    delivery["remaining_balance"] = (winning_cents - new_total_cents) / 100
    delivery["winner_delivered"] = fully_delivered
    return delivery


def list_deliveries(store, winner_id: int) -> list:
    winner_balance(store, winner_id)
    return store.fetchall(
        "SELECT * FROM deliveries WHERE winner_id = ? ORDER BY delivery_date DESC, id DESC",
        (winner_id,),
    )
