from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal, Optional
from decimal import Decimal
from datetime import date

from promo_engine.schemas.cart import CartLinePayload, AppliedCouponResponse
from promo_engine.services.coupon_validator import CouponValidation
from promo_engine.services.money import money_str


# Request schemas
class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = None
    discount_type: Literal["percentage", "fixed"] = "percentage"
    discount_value: Decimal = Field(..., ge=0)
    min_purchase_amount: Decimal = Field(default=Decimal(0), ge=0)
    max_discount_amount: Optional[Decimal] = Field(default=None, ge=0, description="Cap for percentage coupons")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    usage_limit: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = Field(default=True)
    product_ids: Optional[List[int]] = Field(default=None, description="Restrict the coupon to these products")


class CouponUpdate(BaseModel):
    description: Optional[str] = None
    discount_type: Optional[Literal["percentage", "fixed"]] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    min_purchase_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    usage_limit: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = Field(None, description="Whether coupon is active")
    product_ids: Optional[List[int]] = None


# Response schemas
class CouponResponse(BaseModel):
    id: int
    code: str
    description: Optional[str] = None
    discount_type: str
    discount_value: Decimal
    min_purchase_amount: Decimal
    max_discount_amount: Optional[Decimal] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    usage_limit: Optional[int] = None
    times_used: int
    is_active: bool
    product_ids: Optional[List[int]] = None

    # Pydantic v2 style config (replaces class Config)
    model_config = ConfigDict(from_attributes=True)


# Checkout coupon panel
class CouponCartRequest(BaseModel):
    code: str = Field(..., min_length=1)
    items: List[CartLinePayload]


class CouponValidationResponse(BaseModel):
    code: str
    valid: bool
    discount: str
    eligible_subtotal: str
    reason: Optional[str] = None
    required_amount: Optional[str] = None

    @classmethod
    def from_domain(cls, code: str, validation: CouponValidation) -> "CouponValidationResponse":
        return cls(
            code=code,
            valid=validation.ok,
            discount=money_str(validation.discount),
            eligible_subtotal=money_str(validation.eligible_subtotal),
            reason=validation.reason.value if validation.reason else None,
            required_amount=None if validation.required_amount is None else money_str(validation.required_amount),
        )


class ApplyCouponResponse(BaseModel):
    validation: CouponValidationResponse
    applied_coupon: Optional[AppliedCouponResponse] = None
