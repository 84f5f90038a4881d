"""Store Service models package."""

from services.store_service.models.access import NewsletterSubscriber, UserRole
from services.store_service.models.commerce import Order
from services.store_service.models.enums import AppRole, OrderStatus, PaymentStatus
from services.store_service.models.inventory import InventoryItem

__all__ = [
    "AppRole",
    "InventoryItem",
    "NewsletterSubscriber",
    "Order",
    "OrderStatus",
    "PaymentStatus",
    "UserRole",
]
