
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from promo_engine.database import get_db
from promo_engine.dependencies import get_delivery_rule, get_now, get_restriction_mode
from promo_engine.routers.coupons import _get_by_code_or_404
from promo_engine.schemas.cart import (
    CartLineResponse, CartLinesRequest, CartLinesResponse, CartTotalsRequest, OrderTotalsResponse,
)
from promo_engine.services.cart_pricing import AppliedCoupon, DeliveryRule, compute_order_totals, remove_combo_lines
from promo_engine.services.coupon_service import CouponService
from promo_engine.services.coupon_validator import RestrictionMode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["checkout"])


@router.post("/totals", response_model=OrderTotalsResponse)
def cart_totals(body: CartTotalsRequest, db: Session = Depends(get_db), now: datetime = Depends(get_now),
                delivery_rule: DeliveryRule = Depends(get_delivery_rule),
                mode: RestrictionMode = Depends(get_restriction_mode)):
    """
    Preview checkout totals for the selected lines.

    A coupon applied earlier is re-checked on every call against the current
    cart and the coupon as stored now, so admin edits take effect immediately.
    The discount amount sent back by the client is not used.
    """
    lines = [item.to_domain() for item in body.items]

    applied = None
    if body.applied_coupon is not None:
        c = _get_by_code_or_404(db, body.applied_coupon.code)
        applied = AppliedCoupon(
            coupon=CouponService.to_definition(c),
            discount_amount=body.applied_coupon.discount_amount,
            eligible_subtotal=body.applied_coupon.eligible_subtotal,
            cart_fingerprint=body.applied_coupon.cart_fingerprint,
            validated_at=body.applied_coupon.validated_at,
        )

    totals = compute_order_totals(lines, applied, delivery_rule, now=now, restriction_mode=mode)
    logger.info("Cart totals computed: grand_total=%s %s", totals.grand_total, totals.currency)
    return OrderTotalsResponse.from_domain(totals)


# Called by the client when a combo in its cart was deleted or withdrawn
@router.post("/combos/{combo_id}/remove", response_model=CartLinesResponse)
def remove_combo_from_cart(combo_id: int, body: CartLinesRequest):
    lines = [item.to_domain() for item in body.items]
    kept = remove_combo_lines(lines, combo_id)
    logger.info("Removed %d line(s) of combo %s from cart", len(lines) - len(kept), combo_id)
    return CartLinesResponse(items=[CartLineResponse.from_domain(line) for line in kept])
