"""Currency conversion utilities for the storefront.

Prices and order totals are held in Rand (major unit, ``Decimal``).
Paystack amounts are integers in cents (minor unit, 100 cents = R1).

Conversion chain
----------------
Rand  × 100 → cents (rounded half-up to the nearest cent first)
cents ÷ 100 → Rand
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

# ─── constants ───────────────────────────────────────────────────────────────

CENTS_PER_RAND: int = 100
CENT = Decimal("0.01")

Number = Union[int, float, str, Decimal]


# ─── conversion helpers ───────────────────────────────────────────────────────


def to_money(amount: Number) -> Decimal:
    """Normalise an amount to a two-place Decimal (round half-up)."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def rand_to_cents(rand: Number) -> int:
    """Convert Rand to cents. R399.99 → 39999."""
    return int(to_money(rand) * CENTS_PER_RAND)


def cents_to_rand(cents: int) -> Decimal:
    """Convert cents to Rand. 49999 → R499.99."""
    return (Decimal(int(cents)) / CENTS_PER_RAND).quantize(CENT)


def format_rand(amount: Number) -> str:
    """Display format used in customer emails, e.g. ``R1,499.99``."""
    return f"R{to_money(amount):,.2f}"
