from warehouse.routers.auth import router as auth_router
from warehouse.routers.health import router as health_router
from warehouse.routers.items import router as items_router
from warehouse.routers.purchases import router as purchases_router
from warehouse.routers.sales import router as sales_router
from warehouse.routers.stock import history_router as stock_history_router
from warehouse.routers.stock import router as stock_router

__all__ = [
    "auth_router",
    "health_router",
    "items_router",
    "purchases_router",
    "sales_router",
    "stock_history_router",
    "stock_router",
]
