
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union

from promo_engine.errors import PricingInvariantError
from promo_engine.services.domain import CartLine, CouponDefinition, lines_subtotal, selected_lines
from promo_engine.services.money import D, ZERO, round2
from promo_engine.services.offer_window import OfferStatus, classify_offer_window

logger = logging.getLogger(__name__)


class CouponReason(str, Enum):
    NOT_ACTIVE_OR_EXPIRED = "not_active_or_expired"
    BELOW_MINIMUM_PURCHASE = "below_minimum_purchase"
    USAGE_LIMIT_EXCEEDED = "usage_limit_exceeded"
    NO_ELIGIBLE_ITEMS = "no_eligible_items"


class RestrictionMode(str, Enum):
    """
    How an item-restricted coupon is priced.

    SUBSET: discount and minimum purchase are computed on the restricted lines only.
    GATED: the full cart subtotal is used once any restricted item is present.
    """
    SUBSET = "subset"
    GATED = "gated"


@dataclass(frozen=True)
class CouponValidation:
    ok: bool
    discount: Decimal = ZERO
    eligible_subtotal: Decimal = ZERO
    reason: Optional[CouponReason] = None
    required_amount: Optional[Decimal] = None

    @classmethod
    def success(cls, discount: Decimal, eligible_subtotal: Decimal) -> "CouponValidation":
        return cls(ok=True, discount=discount, eligible_subtotal=eligible_subtotal)

    @classmethod
    def failure(cls, reason: CouponReason, eligible_subtotal: Decimal = ZERO,
                required_amount: Optional[Decimal] = None) -> "CouponValidation":
        return cls(ok=False, eligible_subtotal=eligible_subtotal, reason=reason, required_amount=required_amount)


def validate_coupon(
    coupon: CouponDefinition,
    now: Union[date, datetime],
    eligible_subtotal,
) -> CouponValidation:
    """Check a coupon against an eligible subtotal. The first failing rule is reported."""
    eligible_subtotal = D(eligible_subtotal)

    status = classify_offer_window(coupon.is_active, coupon.valid_from, coupon.valid_until, now)
    if status != OfferStatus.ACTIVE:
        logger.debug("Coupon %s rejected: window is %s", coupon.code, status.value)
        return CouponValidation.failure(CouponReason.NOT_ACTIVE_OR_EXPIRED, eligible_subtotal)

    minimum = D(coupon.min_purchase_amount)
    # compared at the precision the shopper sees
    if round2(eligible_subtotal) < minimum:
        logger.debug("Coupon %s rejected: %s below minimum %s", coupon.code, eligible_subtotal, minimum)
        return CouponValidation.failure(CouponReason.BELOW_MINIMUM_PURCHASE, eligible_subtotal, required_amount=minimum)

    if coupon.usage_limit is not None and coupon.times_used >= coupon.usage_limit:
        logger.debug("Coupon %s rejected: usage limit %s reached", coupon.code, coupon.usage_limit)
        return CouponValidation.failure(CouponReason.USAGE_LIMIT_EXCEEDED, eligible_subtotal)

    discount = coupon.discount_rule.apply(eligible_subtotal)
    if discount > eligible_subtotal:
        raise PricingInvariantError(f"Coupon {coupon.code} discount {discount} exceeds {eligible_subtotal}")
    return CouponValidation.success(discount, eligible_subtotal)


def has_eligible_items(coupon: CouponDefinition, lines: List[CartLine]) -> bool:
    if not coupon.is_restricted:
        return bool(lines)
    return any(line.item_id in coupon.restricted_item_ids for line in lines)


def eligible_subtotal(
    coupon: CouponDefinition,
    lines: List[CartLine],
    mode: RestrictionMode = RestrictionMode.SUBSET,
) -> Decimal:
    """Subtotal a coupon's discount is computed against, over the given (selected) lines."""
    if not coupon.is_restricted or mode == RestrictionMode.GATED:
        return lines_subtotal(lines)
    return lines_subtotal([line for line in lines if line.item_id in coupon.restricted_item_ids])


def evaluate_coupon_for_cart(
    coupon: CouponDefinition,
    lines: List[CartLine],
    now: Union[date, datetime],
    mode: RestrictionMode = RestrictionMode.SUBSET,
) -> CouponValidation:
    chosen = selected_lines(lines)
    if coupon.is_restricted and not has_eligible_items(coupon, chosen):
        logger.debug("Coupon %s rejected: no restricted item in cart", coupon.code)
        return CouponValidation.failure(CouponReason.NO_ELIGIBLE_ITEMS)
    return validate_coupon(coupon, now, eligible_subtotal(coupon, chosen, mode))
