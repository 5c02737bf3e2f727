"""
Order totals for the checkout screen and for order placement.

Layers compose in a fixed order: item-level sale percentage per unit (combo
lines carry their frozen bundle price instead), then the coupon on the
selected subtotal, then delivery. Nothing here mutates the cart or the
coupon. An applied coupon is re-validated against the current lines on every
call, so the amount it carries is only a record of what was shown earlier.
"""
import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from promo_engine import config
from promo_engine.errors import EmptyCartError, PricingInvariantError
from promo_engine.services.coupon_validator import (
    CouponReason, CouponValidation, RestrictionMode, evaluate_coupon_for_cart,
)
from promo_engine.services.domain import CartLine, CouponDefinition, lines_subtotal, selected_lines
from promo_engine.services.money import D, ZERO, round2, to_minor_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryRule:
    free_delivery_threshold: Decimal
    flat_fee: Decimal

    @classmethod
    def from_config(cls) -> "DeliveryRule":
        return cls(config.FREE_DELIVERY_THRESHOLD, config.FLAT_DELIVERY_FEE)

    def charge_for(self, subtotal) -> Decimal:
        # free strictly above the threshold; the threshold amount itself pays the fee
        if round2(subtotal) > D(self.free_delivery_threshold):
            return ZERO
        return D(self.flat_fee)


@dataclass(frozen=True)
class AppliedCoupon:
    coupon: CouponDefinition
    discount_amount: Decimal
    eligible_subtotal: Decimal
    cart_fingerprint: str
    validated_at: Union[date, datetime]


@dataclass(frozen=True)
class PricedLine:
    item_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    origin_combo_id: Optional[int] = None


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    combo_allocated_discount: Decimal
    coupon_discount: Decimal
    delivery_charge: Decimal
    grand_total: Decimal
    currency: str = "INR"
    lines: List[PricedLine] = field(default_factory=list)
    applied_coupon: Optional[AppliedCoupon] = None
    coupon_rejection: Optional[CouponReason] = None

    @property
    def grand_total_minor(self) -> int:
        return to_minor_units(self.grand_total)


def cart_fingerprint(lines: List[CartLine]) -> str:
    """Digest of the selected lines; any change to them invalidates an applied coupon."""
    rows = sorted(
        (
            line.item_id,
            line.quantity,
            str(D(line.unit_base_price)),
            str(D(line.sale_percentage)),
            line.origin_combo_id if line.origin_combo_id is not None else -1,
        )
        for line in selected_lines(lines)
    )
    return hashlib.sha256(json.dumps(rows).encode("utf-8")).hexdigest()


def apply_coupon(
    coupon: CouponDefinition,
    lines: List[CartLine],
    now: Union[date, datetime],
    mode: RestrictionMode = RestrictionMode.SUBSET,
) -> Tuple[CouponValidation, Optional[AppliedCoupon]]:
    validation = evaluate_coupon_for_cart(coupon, lines, now, mode)
    if not validation.ok:
        return validation, None
    applied = AppliedCoupon(
        coupon=coupon,
        discount_amount=validation.discount,
        eligible_subtotal=validation.eligible_subtotal,
        cart_fingerprint=cart_fingerprint(lines),
        validated_at=now,
    )
    return validation, applied


def remove_combo_lines(lines: List[CartLine], combo_id: int) -> List[CartLine]:
    """Lines left after a combo is deleted: everything that did not come from it."""
    return [line for line in lines if line.origin_combo_id != combo_id]


def compute_order_totals(
    lines: List[CartLine],
    applied_coupon: Optional[AppliedCoupon] = None,
    delivery_rule: Optional[DeliveryRule] = None,
    now: Union[date, datetime, None] = None,
    restriction_mode: RestrictionMode = RestrictionMode.SUBSET,
    currency: Optional[str] = None,
) -> OrderTotals:
    chosen = selected_lines(lines)
    if not chosen:
        raise EmptyCartError()
    delivery_rule = delivery_rule or DeliveryRule.from_config()

    subtotal = round2(lines_subtotal(chosen))
    combo_discount = round2(sum((line.combo_discount for line in chosen), ZERO))

    coupon = None
    rejection = None
    if applied_coupon is not None:
        if applied_coupon.cart_fingerprint != cart_fingerprint(chosen):
            logger.info("Cart changed since coupon %s was applied; re-validating", applied_coupon.coupon.code)
        # the amount carried by the caller is never trusted; it is re-derived from the definition
        validation, coupon = apply_coupon(
            applied_coupon.coupon, chosen, now or applied_coupon.validated_at, restriction_mode,
        )
        if coupon is None:
            rejection = validation.reason
            logger.warning("Dropping coupon %s: %s", applied_coupon.coupon.code, rejection.value)
        elif (coupon.cart_fingerprint == applied_coupon.cart_fingerprint
              and D(coupon.discount_amount) == D(applied_coupon.discount_amount)
              and D(coupon.eligible_subtotal) == D(applied_coupon.eligible_subtotal)):
            coupon = applied_coupon
        elif coupon.cart_fingerprint == applied_coupon.cart_fingerprint:
            logger.warning(
                "Coupon %s amount %s did not match recomputed %s; using recomputed amount",
                applied_coupon.coupon.code, applied_coupon.discount_amount, coupon.discount_amount,
            )

    coupon_discount = round2(coupon.discount_amount) if coupon is not None else ZERO
    if coupon_discount > subtotal:
        raise PricingInvariantError(f"Coupon discount {coupon_discount} exceeds subtotal {subtotal}")

    delivery_charge = delivery_rule.charge_for(subtotal)
    grand_total = max(ZERO, subtotal - coupon_discount + delivery_charge)

    logger.debug(
        "Totals: subtotal=%s combo=%s coupon=%s delivery=%s grand=%s",
        subtotal, combo_discount, coupon_discount, delivery_charge, grand_total,
    )
    return OrderTotals(
        subtotal=subtotal,
        combo_allocated_discount=combo_discount,
        coupon_discount=coupon_discount,
        delivery_charge=round2(delivery_charge),
        grand_total=round2(grand_total),
        currency=currency or config.CURRENCY,
        lines=[
            PricedLine(
                item_id=line.item_id,
                quantity=line.quantity,
                unit_price=round2(line.unit_price),
                line_total=round2(line.line_total),
                origin_combo_id=line.origin_combo_id,
            )
            for line in chosen
        ],
        applied_coupon=coupon,
        coupon_rejection=rejection,
    )
