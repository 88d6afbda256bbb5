"""
Dashboard statistics for one scheme.
"""
from datetime import date

# A customer with any winner row in the scheme has left the monthly
# paid/unpaid cycle and is counted in neither bucket.
PAID_THIS_MONTH = """
    EXISTS (
        SELECT 1 FROM payments p
        WHERE p.customer_id = c.id AND p.month_year = :month AND p.scheme_id = :scheme_id
    )
"""

NOT_A_WINNER = """
    NOT EXISTS (
        SELECT 1 FROM winners w
        WHERE w.customer_id = c.id AND w.scheme_id = :scheme_id
    )
"""


def current_month_year(today: date = None) -> str:
    return (today or date.today()).strftime("%Y-%m")


def dashboard_stats(store, scheme_id: int = None, today: date = None) -> dict:
    """
    Customer count, paid/unpaid counts for the current month and the total
    monthly amount still outstanding. All zero without a scheme.
    """
    if not scheme_id:
        return {
            "totalCustomers": 0,
            "unpaidThisMonth": 0,
            "paidThisMonth": 0,
            "totalOutstanding": 0,
        }

    params = {"scheme_id": scheme_id, "month": current_month_year(today)}

    total_customers = store.scalar(
        "SELECT COUNT(*) FROM customers WHERE scheme_id = :scheme_id", params
    )
    unpaid = store.fetchone(
        f"""SELECT COUNT(*) AS count, COALESCE(SUM(c.monthly_amount), 0) AS outstanding
            FROM customers c
            WHERE c.scheme_id = :scheme_id AND NOT {PAID_THIS_MONTH} AND {NOT_A_WINNER}""",
        params,
    )
    paid = store.scalar(
        f"""SELECT COUNT(*) FROM customers c
            WHERE c.scheme_id = :scheme_id AND {PAID_THIS_MONTH} AND {NOT_A_WINNER}""",
        params,
    )

    return {
        "totalCustomers": total_customers or 0,
        "unpaidThisMonth": unpaid["count"] or 0,
        "paidThisMonth": paid or 0,
        "totalOutstanding": unpaid["outstanding"] or 0,
    }
