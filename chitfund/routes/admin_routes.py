"""
Admin routes: application info and data maintenance.
"""
from fastapi import APIRouter, Depends

from chitfund import config, records
from chitfund.database import Store
from chitfund.dependencies import get_store, require_auth
from chitfund.responses import ok

router = APIRouter()


@router.get("/app/info")
async def app_info():
    return ok(name=config.APP_NAME, version=config.APP_VERSION)


@router.get("/app/default-start-date")
async def default_start_date():
    return ok(startDate=config.DEFAULT_START_DATE)


@router.post("/admin/clear-data", dependencies=[Depends(require_auth)])
async def clear_data(store: Store = Depends(get_store)):
    """Wipe customers, payments, winners and deliveries. Users and schemes stay."""
    deleted = records.clear_all_data(store)
    return ok(message="Database cleared successfully", deleted=deleted)
