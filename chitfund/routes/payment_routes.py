"""
Payment routes: record payments and list them by scheme, day or range.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends

from chitfund import records
from chitfund.database import Store
from chitfund.dependencies import get_store, require_auth
from chitfund.responses import ok

router = APIRouter(dependencies=[Depends(require_auth)])


@router.post("")
async def add_payment(payload: dict = Body(...), store: Store = Depends(get_store)):
    return ok(payment=records.add_payment(store, payload))


@router.get("")
async def list_payments(scheme_id: Optional[int] = None, store: Store = Depends(get_store)):
    return ok(payments=records.list_payments(store, scheme_id))


@router.get("/by-date")
async def payments_by_date(payment_date: str, scheme_id: Optional[int] = None, store: Store = Depends(get_store)):
    return ok(transactions=records.list_payments_by_date(store, payment_date, scheme_id))


@router.get("/by-date-range")
async def payments_by_date_range(
    start_date: str,
    end_date: str,
    scheme_id: Optional[int] = None,
    store: Store = Depends(get_store),
):
    return ok(transactions=records.list_payments_by_date_range(store, start_date, end_date, scheme_id))
