"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional

from libs.common.config import get_settings
from libs.common.sanitize import strip_html
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    model_validator,
)
from services.store_service.models import AppRole, OrderStatus, PaymentStatus
from services.store_service.models.inventory import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    DEFAULT_STOCK_QUANTITY,
)

settings = get_settings()

# One cent; anything smaller would reach Paystack as 0.
MIN_AMOUNT = Decimal("0.01")


def _required_text(value: str) -> str:
    value = strip_html(value)
    if not value:
        raise ValueError("must contain text")
    return value


# Every customer-supplied string passes through strip_html.
PhoneStr = Annotated[str, Field(max_length=30), AfterValidator(strip_html)]
PostalCodeStr = Annotated[str, Field(max_length=20), AfterValidator(strip_html)]
SizeStr = Annotated[str, Field(max_length=20), AfterValidator(strip_html)]
ImageUrlStr = Annotated[str, Field(max_length=2048), AfterValidator(strip_html)]
RequiredSafeStr = Annotated[
    str, Field(min_length=1, max_length=255), AfterValidator(_required_text)
]

# ============================================================================
# CHECKOUT / PAYMENT SCHEMAS
# ============================================================================


class ShippingAddress(BaseModel):
    address: RequiredSafeStr
    city: RequiredSafeStr
    postal_code: Optional[PostalCodeStr] = None


class OrderItemPayload(BaseModel):
    """A cart line as carried in payment metadata and stored on the order."""

    id: int = Field(..., ge=0)
    name: RequiredSafeStr
    quantity: int = Field(..., ge=1, le=settings.CHECKOUT_MAX_ITEM_QUANTITY)
    price: Decimal = Field(
        ..., ge=MIN_AMOUNT, le=settings.CHECKOUT_MAX_ITEM_PRICE, decimal_places=2
    )
    size: Optional[SizeStr] = None
    image: Optional[ImageUrlStr] = None


class CheckoutMetadata(BaseModel):
    """
    Customer details sent at initialize time and echoed back by Paystack.

    ``honeypot`` is a hidden form field; browsers leave it empty.
    """

    model_config = ConfigDict(extra="ignore")

    customer_name: RequiredSafeStr
    customer_email: EmailStr
    phone: Optional[PhoneStr] = None
    shipping_address: ShippingAddress
    items: list[OrderItemPayload] = Field(
        ..., min_length=1, max_length=settings.CHECKOUT_MAX_ITEMS
    )
    # Unconstrained so a filled value never shows up as a field error.
    honeypot: Optional[Any] = None


class PaymentInitRequest(BaseModel):
    email: EmailStr
    amount: Decimal = Field(
        ..., ge=MIN_AMOUNT, le=settings.CHECKOUT_MAX_AMOUNT, decimal_places=2
    )
    callback_url: Optional[str] = Field(None, max_length=2048)
    metadata: CheckoutMetadata


class PaymentVerifyRequest(BaseModel):
    reference: str = Field(..., min_length=1, max_length=100)


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    customer_email: str
    customer_name: str
    customer_phone: Optional[str]
    items: list[dict[str, Any]]
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    payment_reference: str
    payment_provider: str
    shipping_address: Optional[dict[str, Any]]
    created_at: datetime


class OrderListResponse(BaseModel):
    """Paginated order list."""

    items: list[OrderResponse]
    total: int
    page: int
    page_size: int


class OrderStatusUpdate(BaseModel):
    """Update order status (admin)."""

    status: OrderStatus


class OrderStatsResponse(BaseModel):
    total_orders: int
    total_revenue: Decimal
    pending_orders: int
    completed_orders: int


# ============================================================================
# INVENTORY SCHEMAS
# ============================================================================


class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: int
    product_name: str
    stock_quantity: int
    low_stock_threshold: int
    stock_status: str
    updated_at: datetime


class InventoryOverviewResponse(BaseModel):
    """Inventory list with the stock alert counts shown above it."""

    items: list[InventoryItemResponse]
    low_stock_count: int
    out_of_stock_count: int


class InventorySeedProduct(BaseModel):
    product_id: int = Field(..., ge=0)
    product_name: RequiredSafeStr


class InventorySeedRequest(BaseModel):
    """Catalog products to create stock records for; existing ones are skipped."""

    products: list[InventorySeedProduct] = Field(..., min_length=1, max_length=500)
    stock_quantity: int = Field(DEFAULT_STOCK_QUANTITY, ge=0)
    low_stock_threshold: int = Field(DEFAULT_LOW_STOCK_THRESHOLD, ge=0)


class InventorySeedResponse(BaseModel):
    created: int
    items: list[InventoryItemResponse]


class InventoryUpdate(BaseModel):
    stock_quantity: Optional[int] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def require_a_change(self) -> "InventoryUpdate":
        if self.stock_quantity is None and self.low_stock_threshold is None:
            raise ValueError("stock_quantity or low_stock_threshold is required")
        return self


# ============================================================================
# ADMIN / ROLE SCHEMAS
# ============================================================================


class AdminVerifyResponse(BaseModel):
    is_admin: bool
    user_id: str
    verified_at: datetime


class UserRoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    role: AppRole
    created_at: datetime


class PromoteAdminRequest(BaseModel):
    email: EmailStr


# ============================================================================
# NEWSLETTER SCHEMAS
# ============================================================================


class NewsletterSubscribeRequest(BaseModel):
    email: EmailStr


class NewsletterSubscribeResponse(BaseModel):
    message: str
    already_subscribed: bool = False
