from medstock.routers.admin_stock import router as admin_stock_router
from medstock.routers.health import router as health_router
from medstock.routers.pharmacy_stock import router as pharmacy_stock_router

__all__ = [
    "admin_stock_router",
    "health_router",
    "pharmacy_stock_router",
]
