# storefront/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.api.routers import carts, health, orders, products, profile
from storefront.data.store import StoreUnavailable
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"{request.method} {request.url.path} failed, store unavailable: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Service",
        version="1.0.0",
    )

    # błędy infrastruktury wychodzą jako nieprzezroczyste 503
    app.add_exception_handler(StoreUnavailable, store_unavailable_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(profile.router)

    return app
