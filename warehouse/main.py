import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from warehouse.config import Settings, get_settings
from warehouse.core.logging import setup_logging
from warehouse.database import init_schema
from warehouse.routers import (
    auth_router,
    health_router,
    items_router,
    purchases_router,
    sales_router,
    stock_history_router,
    stock_router,
)

setup_logging()
settings: Settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_schema()
    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET is not set; authenticated endpoints will return 500")
    logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(items_router)
app.include_router(stock_router)
app.include_router(stock_history_router)
app.include_router(purchases_router)
app.include_router(sales_router)


__all__ = ["app"]
