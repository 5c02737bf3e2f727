
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from promo_engine.errors import PricingInvariantError
from promo_engine.services.money import D, ZERO

DISCOUNT_TYPES = ("percentage", "fixed")


def _check_bounds(base: Decimal, discount: Decimal) -> Decimal:
    if discount < ZERO or discount > base:
        raise PricingInvariantError(f"Discount {discount} outside [0, {base}]")
    return discount


@dataclass(frozen=True)
class PercentageDiscount:
    """Percentage off the base amount, optionally capped at an absolute amount"""

    value: Decimal
    cap: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, "value", D(self.value))
        if self.cap is not None:
            object.__setattr__(self, "cap", D(self.cap))
        if self.value < ZERO or self.value > Decimal(100):
            raise ValueError("Percentage discount must be between 0 and 100")
        if self.cap is not None and self.cap < ZERO:
            raise ValueError("Maximum discount cap cannot be negative")

    @property
    def discount_type(self) -> str:
        return "percentage"

    def apply(self, base) -> Decimal:
        base = D(base)
        if base <= ZERO:
            return ZERO
        discount = base * self.value / Decimal(100)
        if self.cap is not None:
            discount = min(discount, self.cap)
        return _check_bounds(base, discount)


@dataclass(frozen=True)
class FixedDiscount:
    """Flat amount off, never more than the base amount"""

    value: Decimal

    def __post_init__(self):
        object.__setattr__(self, "value", D(self.value))
        if self.value < ZERO:
            raise ValueError("Fixed discount cannot be negative")

    @property
    def discount_type(self) -> str:
        return "fixed"

    def apply(self, base) -> Decimal:
        base = D(base)
        if base <= ZERO:
            return ZERO
        return _check_bounds(base, min(self.value, base))


DiscountRule = Union[PercentageDiscount, FixedDiscount]


def discount_rule_from_fields(discount_type: str, value, cap=None) -> DiscountRule:
    """Build a rule from the discount_type/discount_value/max_discount_amount columns."""
    if discount_type == "percentage":
        return PercentageDiscount(D(value), None if cap is None else D(cap))
    if discount_type == "fixed":
        return FixedDiscount(D(value))
    raise ValueError(f"Unsupported discount_type: {discount_type}")
