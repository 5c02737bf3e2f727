
import logging
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from fastapi import HTTPException
from promo_engine.models.coupon import Coupon
from promo_engine.schemas.coupon import CouponCreate, CouponUpdate
from promo_engine.services.discount_rule import discount_rule_from_fields
from promo_engine.services.domain import CouponDefinition
from promo_engine.services.offer_window import OfferStatus, classify_offer_window

logger = logging.getLogger(__name__)


class CouponService:
    """Service class for CRUD operations on coupons"""

    @staticmethod
    def create_coupon(db: Session, coupon_data: CouponCreate) -> Coupon:
        code = coupon_data.code.strip()
        CouponService._validate_coupon_details(
            coupon_data.discount_type, coupon_data.discount_value, coupon_data.max_discount_amount,
            coupon_data.start_date, coupon_data.end_date,
        )
        if CouponService.get_coupon_by_code(db, code):
            raise HTTPException(status_code=400, detail="Coupon code already exists")

        db_coupon = Coupon(
            code=code,
            description=coupon_data.description,
            discount_type=coupon_data.discount_type,
            discount_value=coupon_data.discount_value,
            min_purchase_amount=coupon_data.min_purchase_amount,
            max_discount_amount=coupon_data.max_discount_amount,
            start_date=coupon_data.start_date,
            end_date=coupon_data.end_date,
            usage_limit=coupon_data.usage_limit,
            is_active=True if coupon_data.is_active is None else coupon_data.is_active,
            product_ids=coupon_data.product_ids or None,
        )
        db.add(db_coupon)
        db.commit()
        db.refresh(db_coupon)
        logger.info("Created coupon %s", db_coupon.code)
        return db_coupon

    @staticmethod
    def get_coupon(db: Session, coupon_id: int) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.id == coupon_id).first()

    @staticmethod
    def get_coupon_by_code(db: Session, code: str) -> Optional[Coupon]:
        return db.query(Coupon).filter(func.lower(Coupon.code) == code.strip().lower()).first()

    @staticmethod
    def get_coupons(db: Session, skip: int = 0, limit: int = 100) -> List[Coupon]:
        limit = min(max(limit, 1), 500)
        return db.query(Coupon).order_by(Coupon.id).offset(skip).limit(limit).all()

    @staticmethod
    def get_available_coupons(db: Session, now: datetime) -> List[Coupon]:
        q = db.query(Coupon).filter(Coupon.is_active == True).order_by(Coupon.id)
        # filter out coupons outside their window or already used up
        return [
            c for c in q.all()
            if classify_offer_window(c.is_active, c.start_date, c.end_date, now) == OfferStatus.ACTIVE
            and (c.usage_limit is None or c.times_used < c.usage_limit)
        ]

    @staticmethod
    def update_coupon(db: Session, coupon_id: int, coupon_data: CouponUpdate) -> Optional[Coupon]:
        db_coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not db_coupon:
            return None

        # Compute final fields then validate
        fields = coupon_data.model_dump(exclude_unset=True)
        CouponService._validate_coupon_details(
            fields.get("discount_type") or db_coupon.discount_type,
            db_coupon.discount_value if fields.get("discount_value") is None else fields["discount_value"],
            fields.get("max_discount_amount", db_coupon.max_discount_amount),
            fields.get("start_date", db_coupon.start_date),
            fields.get("end_date", db_coupon.end_date),
        )

        for name, value in fields.items():
            if value is None and name in ("discount_type", "discount_value", "min_purchase_amount", "is_active"):
                continue
            if name == "product_ids":
                value = value or None
            setattr(db_coupon, name, value)

        db.commit()
        db.refresh(db_coupon)
        return db_coupon

    @staticmethod
    def delete_coupon(db: Session, coupon_id: int) -> bool:
        db_coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not db_coupon:
            return False
        db.delete(db_coupon)
        db.commit()
        return True

    @staticmethod
    def to_definition(coupon: Coupon) -> CouponDefinition:
        cap = coupon.max_discount_amount if coupon.discount_type == "percentage" else None
        return CouponDefinition(
            code=coupon.code,
            discount_rule=discount_rule_from_fields(coupon.discount_type, coupon.discount_value, cap),
            min_purchase_amount=Decimal(coupon.min_purchase_amount or 0),
            valid_from=coupon.start_date,
            valid_until=coupon.end_date,
            usage_limit=coupon.usage_limit,
            times_used=coupon.times_used or 0,
            restricted_item_ids=frozenset(coupon.product_ids) if coupon.product_ids else None,
            is_active=coupon.is_active,
        )

    @staticmethod
    def _validate_coupon_details(discount_type: str, discount_value, max_discount_amount,
                                 start_date: Optional[date], end_date: Optional[date]) -> None:
        if discount_type not in ("percentage", "fixed"):
            raise HTTPException(status_code=400, detail="discount_type must be 'percentage' or 'fixed'")
        if discount_value is None or Decimal(discount_value) <= 0:
            raise HTTPException(status_code=400, detail="discount_value must be a positive number")
        if discount_type == "percentage" and Decimal(discount_value) > 100:
            raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100")
        if max_discount_amount is not None and Decimal(max_discount_amount) <= 0:
            raise HTTPException(status_code=400, detail="max_discount_amount must be a positive number")
        if start_date and end_date and end_date < start_date:
            raise HTTPException(status_code=400, detail="end_date cannot be before start_date")
