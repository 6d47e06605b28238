"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Tuple

from pydantic import ValidationError as PydanticValidationError

from marketplace.errors import PersistenceReadError
from marketplace.models import Part
from marketplace.services.money import line_total, sum_money, to_float


@dataclass
class CartItem:
    """One line of the cart: a part and how many of it."""
    part: Part
    quantity: int

    @property
    def part_id(self) -> str:
        return self.part.id

    @property
    def unit_price(self) -> Decimal:
        """Effective price for a single unit."""
        return self.part.effective_price

    @property
    def total_price(self) -> Decimal:
        """Total price for all units."""
        return line_total(self.unit_price, self.quantity)

    def copy(self) -> "CartItem":
        return CartItem(part=self.part.model_copy(deep=True), quantity=self.quantity)

    def to_dict(self) -> dict:
        return {
            "part": self.part.model_dump(mode="json", by_alias=True),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(part=Part.model_validate(data["part"]), quantity=_parse_quantity(data["quantity"]))


def _parse_quantity(value) -> int:
    """Whole-number quantity; floats are accepted only when integral (2.0)."""
    if isinstance(value, bool):
        raise TypeError(f"quantity must be a number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"quantity must be a whole number, got {value!r}")


@dataclass(frozen=True)
class CartState:
    """
    Immutable cart snapshot.

    Totals are derived from `items` on construction and cannot be
    passed in. `CartState.from_items` also copies the lines so later
    changes to the caller's items do not leak into the snapshot.
    """
    items: Tuple[CartItem, ...] = ()
    total_items: int = field(init=False)
    total_amount: Decimal = field(init=False)

    def __post_init__(self):
        items = tuple(self.items)
        object.__setattr__(self, "items", items)
        object.__setattr__(self, "total_items", sum(item.quantity for item in items))
        object.__setattr__(self, "total_amount", sum_money(item.total_price for item in items))

    @classmethod
    def from_items(cls, items: List[CartItem]) -> "CartState":
        return cls(items=tuple(item.copy() for item in items))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> dict:
        """Persisted/JSON form. Totals are informational; loading recomputes them."""
        return {
            "items": [item.to_dict() for item in self.items],
            "totalItems": self.total_items,
            "totalAmount": str(self.total_amount),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartState":
        """
        Rebuild a cart from its persisted form.

        Duplicate part ids are merged and non-positive quantities dropped.

        Raises:
            PersistenceReadError: when the data does not describe a cart
        """
        try:
            raw_items = data["items"]
            if not isinstance(raw_items, list):
                raise TypeError("items must be a list")
            parsed = [CartItem.from_dict(entry) for entry in raw_items]

            merged: List[CartItem] = []
            index = {}
            for item in parsed:
                if item.part_id in index:
                    merged[index[item.part_id]].quantity += item.quantity
                else:
                    index[item.part_id] = len(merged)
                    merged.append(item)
            return cls.from_items([item for item in merged if item.quantity > 0])
        except (KeyError, TypeError, ValueError, ArithmeticError, PydanticValidationError) as e:
            raise PersistenceReadError(f"Invalid cart data: {e}") from e

    def summary(self) -> dict:
        """Cart view for the web UI."""
        return {
            "is_empty": self.is_empty,
            "total_items": self.total_items,
            "total_amount": to_float(self.total_amount),
            "items": [
                {
                    "part_id": item.part_id,
                    "name": item.part.name,
                    "image_url": item.part.image_url,
                    "quantity": item.quantity,
                    "price": to_float(item.part.price),
                    "unit_price": to_float(item.unit_price),
                    "total": to_float(item.total_price),
                    "is_available": item.part.is_available,
                }
                for item in self.items
            ],
        }
