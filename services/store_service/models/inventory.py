"""Store inventory model: stock level per catalog product."""

import uuid
from datetime import datetime

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import CheckConstraint, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

DEFAULT_STOCK_QUANTITY = 50
DEFAULT_LOW_STOCK_THRESHOLD = 10


class InventoryItem(Base):
    """Stock on hand for one catalog product."""

    __tablename__ = "store_inventory"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)

    stock_quantity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    low_stock_threshold: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_LOW_STOCK_THRESHOLD,
        server_default=str(DEFAULT_LOW_STOCK_THRESHOLD),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="inventory_stock_non_negative"),
        CheckConstraint(
            "low_stock_threshold >= 0", name="inventory_threshold_non_negative"
        ),
    )

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock_quantity == 0

    @property
    def is_low_stock(self) -> bool:
        """At or under the threshold but not yet sold out."""
        return 0 < self.stock_quantity <= self.low_stock_threshold

    @property
    def stock_status(self) -> str:
        if self.is_out_of_stock:
            return "out_of_stock"
        if self.is_low_stock:
            return "low_stock"
        return "in_stock"

    def __repr__(self):
        return f"<InventoryItem product={self.product_id} qty={self.stock_quantity}>"
