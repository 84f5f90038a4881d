"""How a paid total is split into subtotal, shipping and tax.

Paystack only reports the amount charged. A ``PricingPolicy`` decides how
that amount is recorded on the order; ``total`` is always the paid amount.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol

from libs.common.config import get_settings
from libs.common.currency import to_money


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal


class PricingPolicy(Protocol):
    name: str

    def split(self, paid_total: Decimal, items: Iterable[dict]) -> OrderTotals: ...


class BundledPricingPolicy:
    """Shipping and tax are folded into item prices; both are recorded as 0."""

    name = "bundled"

    def split(self, paid_total: Decimal, items: Iterable[dict]) -> OrderTotals:
        total = to_money(paid_total)
        return OrderTotals(
            subtotal=total,
            shipping_cost=Decimal("0.00"),
            tax=Decimal("0.00"),
            total=total,
        )


class VatInclusivePricingPolicy:
    """
    Prices include VAT; anything charged above the item lines is shipping.

    ``tax`` is the VAT portion of the total, ``total * rate / (1 + rate)``.
    """

    name = "vat_inclusive"

    def __init__(self, vat_rate: float):
        self.vat_rate = Decimal(str(vat_rate))

    def split(self, paid_total: Decimal, items: Iterable[dict]) -> OrderTotals:
        total = to_money(paid_total)
        lines = sum(
            (Decimal(str(item["price"])) * int(item["quantity"]) for item in items),
            Decimal("0"),
        )
        subtotal = to_money(min(lines, total))
        shipping = to_money(total - subtotal)
        tax = to_money(total * self.vat_rate / (1 + self.vat_rate))
        return OrderTotals(
            subtotal=subtotal, shipping_cost=shipping, tax=tax, total=total
        )


def get_pricing_policy() -> PricingPolicy:
    """FastAPI dependency returning the configured policy."""
    settings = get_settings()
    if settings.PRICING_POLICY == "vat_inclusive":
        return VatInclusivePricingPolicy(settings.VAT_RATE)
    return BundledPricingPolicy()
