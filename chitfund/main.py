"""
Main FastAPI application entry point.
ChitFund Ledger - customers, payments, draws and deliveries for a chit-fund scheme.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from chitfund import config
from chitfund.auth import LoginThrottle
from chitfund.database import open_store
from chitfund.exceptions import ChitFundError
from chitfund.responses import error_response
from chitfund.routes import (
    admin_routes,
    auth_routes,
    customer_routes,
    dashboard_routes,
    payment_routes,
    scheme_routes,
    winner_routes,
)

logger = logging.getLogger(__name__)


def create_app(database_path=None, bundled_database_path=None) -> FastAPI:
    """
    Build the API around one store. The store is opened at startup (a failure
    there aborts startup) and closed at shutdown.
    """
    if database_path is None:
        database_path = config.DATABASE_PATH
        if not config.IS_DEVELOPMENT:
            bundled_database_path = bundled_database_path or config.BUNDLED_DATABASE_PATH

    app = FastAPI(
        title=config.APP_NAME,
        description="Chit-fund scheme ledger",
        version=config.APP_VERSION,
    )
    app.state.store = None
    app.state.login_throttle = LoginThrottle()

    @app.on_event("startup")
    async def startup_event():
        app.state.store = open_store(database_path, bundled_database_path)
        logger.info("All services initialized successfully")

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.store is not None:
            app.state.store.close()
            app.state.store = None

    app.include_router(auth_routes.router, prefix="/auth", tags=["Authentication"])
    app.include_router(admin_routes.router, tags=["Admin"])
    app.include_router(customer_routes.router, prefix="/customers", tags=["Customers"])
    app.include_router(payment_routes.router, prefix="/payments", tags=["Payments"])
    app.include_router(scheme_routes.router, prefix="/schemes", tags=["Schemes"])
    app.include_router(winner_routes.router, tags=["Winners"])
    app.include_router(dashboard_routes.router, prefix="/dashboard", tags=["Dashboard"])

    # Error handlers
    @app.exception_handler(ChitFundError)
    async def chitfund_error_handler(request: Request, exc: ChitFundError):
        logger.info(f"{request.method} {request.url.path} failed: {exc}")
        return error_response(str(exc), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
            message = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg", message)
        return error_response(message, status_code=400)

    @app.exception_handler(500)
    async def server_error_handler(request: Request, exc):
        logger.error(f"{request.method} {request.url.path} crashed: {exc!r}")
        return error_response("Internal server error", status_code=500)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=config.LOG_LEVEL)
    uvicorn.run("chitfund.main:app", host="127.0.0.1", port=8000)
