from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from decimal import Decimal
from datetime import date, datetime

from promo_engine.schemas.cart import CartLineResponse


class ComboItemIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(default=1, gt=0)


# Request schemas
class ComboCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    discount_type: Literal["percentage", "fixed"] = "percentage"
    discount_value: Decimal = Field(..., ge=0, description="Percentage (0-100) or fixed amount off the bundle")
    is_active: Optional[bool] = Field(default=True)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    items: List[ComboItemIn] = Field(..., min_length=1)


class ComboUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    discount_type: Optional[Literal["percentage", "fixed"]] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    items: Optional[List[ComboItemIn]] = Field(None, min_length=1)


# Response schemas
class ComboItemResponse(BaseModel):
    product_id: int
    quantity: int


class ComboResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    discount_type: str
    discount_value: Decimal
    is_active: bool
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: Optional[datetime] = None
    items: List[ComboItemResponse]
    status: str = Field(..., description="'active', 'upcoming' or 'expired', derived at read time")


class ComboLinePriceResponse(BaseModel):
    item_id: int
    quantity: int
    unit_price: str
    line_total: str
    allocated_discount: str
    discounted_total: str


class ComboPricingResponse(BaseModel):
    combo_id: int
    status: str
    lines: List[ComboLinePriceResponse]
    bundle_subtotal: str
    bundle_discount: str
    bundle_discounted_total: str
    missing_item_ids: List[int] = Field(default_factory=list)


class ComboCartLinesResponse(BaseModel):
    combo_id: int
    items: List[CartLineResponse]
    missing_item_ids: List[int] = Field(default_factory=list)
