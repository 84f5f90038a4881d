"""Store commerce models: orders."""

import random
import string
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import epoch_millis, utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    OrderStatus,
    PaymentStatus,
    enum_values,
)
from sqlalchemy import JSON, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Numeric, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")

BASE36_ALPHABET = string.digits + string.ascii_uppercase


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


class Order(Base):
    """
    Paid store orders.

    Rows are created only by payment verification; afterwards only ``status``
    changes (admin). ``payment_reference`` is the deduplication key.
    """

    __tablename__ = "store_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, index=True
    )

    # Customer
    user_id: Mapped[Optional[str]] = mapped_column(
        String(255), index=True, nullable=True
    )
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # [{"id", "name", "quantity", "price", "size"?, "image"?}]
    items: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    # Pricing (in Rand)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, server_default="0")
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="store_order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="pending",
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            values_callable=enum_values,
            name="store_payment_status_enum",
        ),
        default=PaymentStatus.PENDING,
        server_default="pending",
    )

    payment_reference: Mapped[str] = mapped_column(
        String(128), unique=True, nullable=False, index=True
    )
    payment_provider: Mapped[str] = mapped_column(
        String(32), default="paystack", server_default="paystack"
    )

    # {"address", "city", "postal_code"?}
    shipping_address: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    @staticmethod
    def generate_order_number(moment: Optional[datetime] = None) -> str:
        """
        Human-facing order number like ``ORD-M3X1K2ZQ-7KQ2``.

        Base36 millisecond timestamp plus a random suffix. A label only:
        uniqueness of orders is keyed on ``payment_reference``.
        """
        timestamp_part = to_base36(epoch_millis(moment))
        random_part = "".join(random.choices(BASE36_ALPHABET, k=4))
        return f"ORD-{timestamp_part}-{random_part}"

    def __repr__(self):
        return f"<Order {self.order_number} ref={self.payment_reference}>"
