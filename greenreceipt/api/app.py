"""FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from greenreceipt import __version__
from greenreceipt.analytics import analytics_router
from greenreceipt.auth import auth_router
from greenreceipt.bills import bills_router
from greenreceipt.catalog import catalog_router
from greenreceipt.config import config
from greenreceipt.db import lifespan
from greenreceipt.notifications import notifications_router
from greenreceipt.receipts import receipts_router

from .errors import register_exception_handlers
from .routes import router as health_router


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Assemble the API.

    Args:
        use_lifespan: open MongoDB on startup; tests pass False and supply
            their own dependencies
    """
    app = FastAPI(
        title="GreenReceipt",
        description="Digital receipts, merchant catalogs and spending analytics",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    # Cookies carry the refresh token, so origins must be explicit.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept-Language"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(receipts_router)
    app.include_router(analytics_router)
    app.include_router(bills_router)
    app.include_router(notifications_router)

    register_exception_handlers(app)
    return app


app = create_app()
