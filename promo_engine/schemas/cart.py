from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from promo_engine.services.cart_pricing import AppliedCoupon, OrderTotals
from promo_engine.services.domain import CartLine
from promo_engine.services.money import money_str


# Cart lines travel between the client-side cart and the engine
class CartLinePayload(BaseModel):
    item_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    unit_base_price: Decimal = Field(..., ge=0, description="Unit price captured when the line was added")
    sale_percentage: Decimal = Field(default=Decimal(0), ge=0, le=100)
    origin_combo_id: Optional[int] = None
    bundle_subtotal_at_add_time: Optional[Decimal] = Field(default=None, ge=0)
    bundle_discounted_total_at_add_time: Optional[Decimal] = Field(default=None, ge=0)
    original_unit_price: Optional[Decimal] = Field(default=None, ge=0)
    selected: bool = True

    def to_domain(self) -> CartLine:
        return CartLine(**self.model_dump())


class CartLineResponse(BaseModel):
    item_id: int
    quantity: int
    unit_base_price: str
    sale_percentage: str
    origin_combo_id: Optional[int] = None
    bundle_subtotal_at_add_time: Optional[str] = None
    bundle_discounted_total_at_add_time: Optional[str] = None
    original_unit_price: Optional[str] = None
    selected: bool = True

    @classmethod
    def from_domain(cls, line: CartLine) -> "CartLineResponse":
        def opt(x):
            return None if x is None else money_str(x)

        return cls(
            item_id=line.item_id,
            quantity=line.quantity,
            unit_base_price=money_str(line.unit_base_price),
            sale_percentage=money_str(line.sale_percentage),
            origin_combo_id=line.origin_combo_id,
            bundle_subtotal_at_add_time=opt(line.bundle_subtotal_at_add_time),
            bundle_discounted_total_at_add_time=opt(line.bundle_discounted_total_at_add_time),
            original_unit_price=opt(line.original_unit_price),
            selected=line.selected,
        )


class AppliedCouponPayload(BaseModel):
    code: str
    discount_amount: Decimal = Field(..., ge=0)
    eligible_subtotal: Decimal = Field(..., ge=0)
    cart_fingerprint: str
    validated_at: datetime


class CartLinesRequest(BaseModel):
    items: List[CartLinePayload]


class CartLinesResponse(BaseModel):
    items: List[CartLineResponse]


class CartTotalsRequest(BaseModel):
    items: List[CartLinePayload]
    applied_coupon: Optional[AppliedCouponPayload] = None


class PricedLineResponse(BaseModel):
    item_id: int
    quantity: int
    unit_price: str
    line_total: str
    origin_combo_id: Optional[int] = None


class AppliedCouponResponse(BaseModel):
    code: str
    discount_amount: str
    eligible_subtotal: str
    cart_fingerprint: str
    validated_at: datetime

    @classmethod
    def from_domain(cls, applied: AppliedCoupon) -> "AppliedCouponResponse":
        return cls(
            code=applied.coupon.code,
            discount_amount=money_str(applied.discount_amount),
            eligible_subtotal=money_str(applied.eligible_subtotal),
            cart_fingerprint=applied.cart_fingerprint,
            validated_at=applied.validated_at,
        )


# Money is serialized as 2-decimal strings; grand_total_minor is for the payment gateway
class OrderTotalsResponse(BaseModel):
    subtotal: str
    combo_allocated_discount: str
    coupon_discount: str
    delivery_charge: str
    grand_total: str
    grand_total_minor: int
    currency: str
    lines: List[PricedLineResponse]
    applied_coupon: Optional[AppliedCouponResponse] = None
    coupon_rejection: Optional[str] = None

    @classmethod
    def from_domain(cls, totals: OrderTotals) -> "OrderTotalsResponse":
        return cls(
            subtotal=money_str(totals.subtotal),
            combo_allocated_discount=money_str(totals.combo_allocated_discount),
            coupon_discount=money_str(totals.coupon_discount),
            delivery_charge=money_str(totals.delivery_charge),
            grand_total=money_str(totals.grand_total),
            grand_total_minor=totals.grand_total_minor,
            currency=totals.currency,
            lines=[
                PricedLineResponse(
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_price=money_str(line.unit_price),
                    line_total=money_str(line.line_total),
                    origin_combo_id=line.origin_combo_id,
                )
                for line in totals.lines
            ],
            applied_coupon=AppliedCouponResponse.from_domain(totals.applied_coupon) if totals.applied_coupon else None,
            coupon_rejection=totals.coupon_rejection.value if totals.coupon_rejection else None,
        )
