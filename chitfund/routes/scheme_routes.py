"""
Scheme routes: add, list, get, update, delete.
"""
from fastapi import APIRouter, Body, Depends

from chitfund import records
from chitfund.database import Store
from chitfund.dependencies import get_store, require_auth
from chitfund.responses import ok

router = APIRouter(dependencies=[Depends(require_auth)])


@router.post("")
async def add_scheme(payload: dict = Body(...), store: Store = Depends(get_store)):
    return ok(scheme=records.add_scheme(store, payload))


@router.get("")
async def list_schemes(store: Store = Depends(get_store)):
    return ok(schemes=records.list_schemes(store))


@router.get("/{scheme_id}")
async def get_scheme(scheme_id: int, store: Store = Depends(get_store)):
    return ok(scheme=records.get_scheme(store, scheme_id))


@router.put("/{scheme_id}")
async def update_scheme(scheme_id: int, payload: dict = Body(...), store: Store = Depends(get_store)):
    return ok(scheme=records.update_scheme(store, scheme_id, payload))


@router.delete("/{scheme_id}")
async def delete_scheme(scheme_id: int, store: Store = Depends(get_store)):
    """Deletes the scheme with its customers, payments, winners and deliveries."""
    return ok(result=records.delete_scheme(store, scheme_id))
