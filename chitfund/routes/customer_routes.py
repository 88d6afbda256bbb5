"""
Customer routes: add, list, look up, code generation and code checks.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends

from chitfund import records
from chitfund.codes import next_customer_code
from chitfund.database import Store
from chitfund.dependencies import get_store, require_auth
from chitfund.responses import ok

router = APIRouter(dependencies=[Depends(require_auth)])


@router.post("")
async def add_customer(payload: dict = Body(...), store: Store = Depends(get_store)):
    customer = records.add_customer(store, payload)
    return ok(customer=customer)


@router.get("")
async def list_customers(scheme_id: Optional[int] = None, store: Store = Depends(get_store)):
    return ok(customers=records.list_customers(store, scheme_id))


@router.get("/check-code")
async def check_code(code: str, store: Store = Depends(get_store)):
    """Exact-match existence check."""
    return ok(exists=records.customer_code_exists(store, code))


@router.get("/next-code")
async def next_code(scheme_id: Optional[int] = None, store: Store = Depends(get_store)):
    """Preview of the next code; the insert may still get a different one."""
    return ok(nextCode=next_customer_code(store, scheme_id))


@router.post("/validate-code")
async def validate_code(payload: dict = Body(...), store: Store = Depends(get_store)):
    """Whitespace- and case-insensitive duplicate check."""
    result = records.validate_customer_code(store, payload.get("customer_code"))
    return ok(**result)


@router.get("/{customer_id}")
async def get_customer(customer_id: int, store: Store = Depends(get_store)):
    return ok(customer=records.get_customer(store, customer_id))


@router.get("/{customer_id}/payments")
async def get_customer_payments(customer_id: int, store: Store = Depends(get_store)):
    return ok(payments=records.list_customer_payments(store, customer_id))
