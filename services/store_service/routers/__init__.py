"""Store service routers package."""

from services.store_service.routers.admin import router as admin_router
from services.store_service.routers.newsletter import router as newsletter_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.payments import router as payments_router

__all__ = [
    "admin_router",
    "newsletter_router",
    "orders_router",
    "payments_router",
]
