
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from datetime import datetime
from promo_engine.database import get_db
from promo_engine.dependencies import get_definition_cache, get_now, get_restriction_mode
from promo_engine.models.coupon import Coupon
from promo_engine.schemas.cart import AppliedCouponResponse
from promo_engine.schemas.coupon import (
    CouponCreate, CouponUpdate, CouponResponse, CouponCartRequest, CouponValidationResponse, ApplyCouponResponse,
)
from promo_engine.services.cache import DefinitionCache
from promo_engine.services.cart_pricing import apply_coupon as apply_coupon_to_cart
from promo_engine.services.coupon_service import CouponService
from promo_engine.services.coupon_validator import RestrictionMode, evaluate_coupon_for_cart

router = APIRouter(prefix="/coupons", tags=["coupons"])


def _get_by_code_or_404(db: Session, code: str) -> Coupon:
    c = CouponService.get_coupon_by_code(db, code)
    if not c:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return c


@router.post("", response_model=CouponResponse, status_code=201)
def create_coupon(coupon: CouponCreate, db: Session = Depends(get_db),
                  cache: DefinitionCache = Depends(get_definition_cache)):
    created = CouponService.create_coupon(db, coupon)
    cache.invalidate()
    return created


@router.get("", response_model=List[CouponResponse])
def list_coupons(skip: int = 0, limit: int = 100, db: Session = Depends(get_db),
                 cache: DefinitionCache = Depends(get_definition_cache)):
    return cache.get_or_load(
        f"coupons:{skip}:{limit}",
        lambda: [CouponResponse.model_validate(c) for c in CouponService.get_coupons(db, skip, limit)],
    )


@router.get("/available", response_model=List[CouponResponse])
def list_available_coupons(db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    return CouponService.get_available_coupons(db, now)


@router.post("/validate", response_model=CouponValidationResponse)
def validate_coupon(body: CouponCartRequest, db: Session = Depends(get_db), now: datetime = Depends(get_now),
                    mode: RestrictionMode = Depends(get_restriction_mode)):
    c = _get_by_code_or_404(db, body.code)
    lines = [item.to_domain() for item in body.items]
    validation = evaluate_coupon_for_cart(CouponService.to_definition(c), lines, now, mode)
    return CouponValidationResponse.from_domain(c.code, validation)


# Usage counters are not touched here; redemption is recorded when the order is placed
@router.post("/apply", response_model=ApplyCouponResponse)
def apply_coupon(body: CouponCartRequest, db: Session = Depends(get_db), now: datetime = Depends(get_now),
                 mode: RestrictionMode = Depends(get_restriction_mode)):
    c = _get_by_code_or_404(db, body.code)
    lines = [item.to_domain() for item in body.items]
    validation, applied = apply_coupon_to_cart(CouponService.to_definition(c), lines, now, mode)
    return ApplyCouponResponse(
        validation=CouponValidationResponse.from_domain(c.code, validation),
        applied_coupon=AppliedCouponResponse.from_domain(applied) if applied else None,
    )


@router.get("/{coupon_id}", response_model=CouponResponse)
def get_coupon(coupon_id: int, db: Session = Depends(get_db)):
    c = CouponService.get_coupon(db, coupon_id)
    if not c:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return c


@router.put("/{coupon_id}", response_model=CouponResponse)
def update_coupon(coupon_id: int, payload: CouponUpdate, db: Session = Depends(get_db),
                  cache: DefinitionCache = Depends(get_definition_cache)):
    updated = CouponService.update_coupon(db, coupon_id, payload)
    if not updated:
        raise HTTPException(status_code=404, detail="Coupon not found")
    cache.invalidate()
    return updated


@router.delete("/{coupon_id}", status_code=204)
def delete_coupon(coupon_id: int, db: Session = Depends(get_db),
                  cache: DefinitionCache = Depends(get_definition_cache)):
    ok = CouponService.delete_coupon(db, coupon_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Coupon not found")
    cache.invalidate()
    return
