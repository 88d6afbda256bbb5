"""
Winner and delivery routes.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends

from chitfund import deliveries, records
from chitfund.database import Store
from chitfund.dependencies import get_store, require_auth
from chitfund.responses import ok

router = APIRouter(dependencies=[Depends(require_auth)])


@router.post("/winners")
async def add_winner(payload: dict = Body(...), store: Store = Depends(get_store)):
    return ok(winner=records.add_winner(store, payload))


@router.get("/winners")
async def list_winners(scheme_id: Optional[int] = None, store: Store = Depends(get_store)):
    return ok(winners=records.list_winners(store, scheme_id))


@router.get("/winners/available-months")
async def available_months(scheme_id: Optional[int] = None, store: Store = Depends(get_store)):
    return ok(availableMonths=records.available_months(store, scheme_id))


@router.get("/winners/{winner_id}")
async def get_winner(winner_id: int, store: Store = Depends(get_store)):
    return ok(winner=records.get_winner(store, winner_id))


@router.get("/winners/{winner_id}/deliveries")
async def list_deliveries(winner_id: int, store: Store = Depends(get_store)):
    return ok(deliveries=deliveries.list_deliveries(store, winner_id))


@router.post("/deliveries")
async def add_delivery(payload: dict = Body(...), store: Store = Depends(get_store)):
    delivery = deliveries.add_delivery(
        store,
        payload.get("winner_id"),
        payload.get("bill_number"),
        payload.get("amount"),
        payload.get("notes"),
    )
    return ok(delivery=delivery)
