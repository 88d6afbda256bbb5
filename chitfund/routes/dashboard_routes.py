"""
Dashboard routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from chitfund.database import Store
from chitfund.dependencies import get_store, require_auth
from chitfund.responses import ok
from chitfund.stats import dashboard_stats

router = APIRouter(dependencies=[Depends(require_auth)])


@router.get("/stats")
async def stats(scheme_id: Optional[int] = None, store: Store = Depends(get_store)):
    return ok(stats=dashboard_stats(store, scheme_id))
