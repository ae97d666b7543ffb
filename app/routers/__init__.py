from app.routers.health import router as health_router
from app.routers.inventory import router as inventory_router
from app.routers.lots import router as lots_router
from app.routers.sales import router as sales_router

__all__ = [
    "health_router",
    "inventory_router",
    "lots_router",
    "sales_router",
]
