import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shopcore.api.health import router as health_router
from shopcore.api.routes_cart import router as cart_router
from shopcore.api.routes_catalogue import router as catalogue_router
from shopcore.api.routes_inventory import router as inventory_router
from shopcore.api.routes_order import router as order_router
from shopcore.config import settings
from shopcore.db import init_db
from shopcore.utils.logging_config import RequestLoggingMiddleware, setup_logging

setup_logging(settings.LOG_LEVEL)
log = logging.getLogger("shopcore")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup; RESET_DB=1 in CI to start from an empty schema
    init_db()
    log.info("shopcore started")
    yield
    log.info("shopcore stopped")


app = FastAPI(title="shopcore - cart & order engine", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router, prefix="/api/products", tags=["catalogue"])

app.include_router(inventory_router, tags=["inventory"])

app.include_router(cart_router, tags=["cart"])

app.include_router(order_router, prefix="/api/orders", tags=["orders"])


if __name__ == "__main__":
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
