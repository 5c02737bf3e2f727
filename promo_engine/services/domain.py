"""
Plain value types the pricing engine works on.

These are snapshots: the engine never mutates them and never loads them
itself. Routers build them from ORM rows or request bodies.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, FrozenSet, List, Optional, Union

from promo_engine.services.discount_rule import DiscountRule
from promo_engine.services.money import D, ZERO

DateLike = Union[date, datetime, str, None]


@dataclass(frozen=True)
class CatalogItem:
    id: int
    base_price: Decimal
    sale_percentage: Decimal = ZERO
    stock_quantity: int = 0


# item id -> CatalogItem, or None when the item no longer exists
CatalogLookup = Callable[[int], Optional[CatalogItem]]


@dataclass(frozen=True)
class ComboLine:
    item_id: int
    quantity: int


@dataclass(frozen=True)
class ComboDefinition:
    id: int
    title: str
    discount_rule: DiscountRule
    is_active: bool = True
    start_date: DateLike = None
    end_date: DateLike = None
    lines: List[ComboLine] = field(default_factory=list)


@dataclass(frozen=True)
class CouponDefinition:
    code: str
    discount_rule: DiscountRule
    min_purchase_amount: Decimal = ZERO
    valid_from: DateLike = None
    valid_until: DateLike = None
    usage_limit: Optional[int] = None
    times_used: int = 0
    restricted_item_ids: Optional[FrozenSet[int]] = None
    is_active: bool = True

    @property
    def is_restricted(self) -> bool:
        return bool(self.restricted_item_ids)


@dataclass(frozen=True)
class CartLine:
    item_id: int
    quantity: int
    unit_base_price: Decimal
    sale_percentage: Decimal = ZERO
    origin_combo_id: Optional[int] = None
    bundle_subtotal_at_add_time: Optional[Decimal] = None
    bundle_discounted_total_at_add_time: Optional[Decimal] = None
    # catalog price when the line was added; differs from unit_base_price for combo lines
    original_unit_price: Optional[Decimal] = None
    selected: bool = True

    @property
    def is_from_combo(self) -> bool:
        return self.origin_combo_id is not None

    @property
    def unit_price(self) -> Decimal:
        """Unit price after the item-level sale percentage."""
        return D(self.unit_base_price) * (Decimal(1) - D(self.sale_percentage) / Decimal(100))

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def combo_discount(self) -> Decimal:
        if not self.is_from_combo or self.original_unit_price is None:
            return ZERO
        return max(ZERO, (D(self.original_unit_price) - D(self.unit_base_price)) * self.quantity)


def selected_lines(lines: List[CartLine]) -> List[CartLine]:
    return [line for line in lines if line.selected]


def lines_subtotal(lines: List[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)
