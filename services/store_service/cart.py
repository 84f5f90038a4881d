"""Shopper-side cart and wishlist state.

Both are plain objects created by the caller and passed to whatever needs
them (the checkout controller, a CLI, tests). Every mutation is written
through to a ``StateStorage`` so a session can be restored later.
"""

import json
from dataclasses import asdict, dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional, Protocol

from libs.common.currency import to_money

CART_STORAGE_KEY = "cart_items"
WISHLIST_STORAGE_KEY = "wishlist_items"


# ============================================================================
# STORAGE
# ============================================================================


class StateStorage(Protocol):
    def load(self, key: str) -> list[dict]: ...

    def save(self, key: str, items: list[dict]) -> None: ...


class MemoryStorage:
    """Session-only storage."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def load(self, key: str) -> list[dict]:
        raw = self._data.get(key)
        return json.loads(raw) if raw else []

    def save(self, key: str, items: list[dict]) -> None:
        self._data[key] = json.dumps(items)


class JsonFileStorage:
    """One JSON file per key inside ``directory``."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> list[dict]:
        path = self._path(key)
        if not path.exists():
            return []
        return json.loads(path.read_text(encoding="utf-8"))

    def save(self, key: str, items: list[dict]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Write then rename, so a crash never leaves a half-written file.
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(items), encoding="utf-8")
        tmp.replace(path)


# ============================================================================
# CART
# ============================================================================


@dataclass
class CartItem:
    id: int
    name: str
    price: Decimal
    image: str = ""
    quantity: int = 1
    size: Optional[str] = None

    def __post_init__(self):
        self.price = to_money(self.price)
        if self.price < 0:
            raise ValueError("price must not be negative")
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        data = asdict(self)
        data["price"] = str(self.price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            price=Decimal(str(data["price"])),
            image=data.get("image") or "",
            quantity=int(data.get("quantity", 1)),
            size=data.get("size"),
        )


class CartState:
    """
    Cart lines keyed by product id, in insertion order.

    A line never sits at quantity 0: dropping to 0 or below removes it.
    """

    def __init__(self, storage: Optional[StateStorage] = None):
        self.storage = storage or MemoryStorage()
        self._items: dict[int, CartItem] = {}
        for data in self.storage.load(CART_STORAGE_KEY):
            item = CartItem.from_dict(data)
            self._items[item.id] = item

    def _persist(self) -> None:
        self.storage.save(CART_STORAGE_KEY, [i.to_dict() for i in self._items.values()])

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self._items.values())

    @property
    def total_price(self) -> Decimal:
        """Sum of ``price * quantity``, recomputed on every read."""
        return sum((i.line_total for i in self._items.values()), Decimal("0.00"))

    def is_empty(self) -> bool:
        return not self._items

    def add_to_cart(
        self,
        id: int,
        name: str,
        price: Decimal,
        image: str = "",
        size: Optional[str] = None,
    ) -> CartItem:
        """Add one unit. An existing line keeps its details and gains 1."""
        existing = self._items.get(id)
        if existing:
            existing.quantity += 1
        else:
            existing = CartItem(id=id, name=name, price=price, image=image, size=size)
            self._items[id] = existing
        self._persist()
        return existing

    def update_quantity(self, id: int, quantity: int) -> None:
        if quantity <= 0:
            self.remove_from_cart(id)
            return
        item = self._items.get(id)
        if item is None:
            return
        item.quantity = quantity
        self._persist()

    def remove_from_cart(self, id: int) -> None:
        if self._items.pop(id, None) is not None:
            self._persist()

    def clear_cart(self) -> None:
        self._items.clear()
        self._persist()


# ============================================================================
# WISHLIST
# ============================================================================


@dataclass
class WishlistItem:
    id: int
    name: str
    price: Decimal
    image: str = ""
    category: str = ""
    original_price: Optional[Decimal] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["price"] = str(self.price)
        if self.original_price is not None:
            data["original_price"] = str(self.original_price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WishlistItem":
        original = data.get("original_price")
        return cls(
            id=int(data["id"]),
            name=data["name"],
            price=Decimal(str(data["price"])),
            image=data.get("image") or "",
            category=data.get("category") or "",
            original_price=Decimal(str(original)) if original is not None else None,
        )


class Wishlist:
    """Saved products, at most one entry per id."""

    def __init__(self, storage: Optional[StateStorage] = None):
        self.storage = storage or MemoryStorage()
        self._items: dict[int, WishlistItem] = {}
        for data in self.storage.load(WISHLIST_STORAGE_KEY):
            item = WishlistItem.from_dict(data)
            self._items[item.id] = item

    def _persist(self) -> None:
        self.storage.save(
            WISHLIST_STORAGE_KEY, [i.to_dict() for i in self._items.values()]
        )

    @property
    def items(self) -> list[WishlistItem]:
        return list(self._items.values())

    @property
    def total_items(self) -> int:
        return len(self._items)

    def contains(self, id: int) -> bool:
        return id in self._items

    def add(self, item: WishlistItem) -> None:
        if item.id in self._items:
            return
        self._items[item.id] = item
        self._persist()

    def remove(self, id: int) -> None:
        if self._items.pop(id, None) is not None:
            self._persist()

    def toggle(self, item: WishlistItem) -> bool:
        """Add or remove ``item``; returns True when it is now saved."""
        if self.contains(item.id):
            self.remove(item.id)
            return False
        self.add(item)
        return True

    def clear(self) -> None:
        self._items.clear()
        self._persist()
