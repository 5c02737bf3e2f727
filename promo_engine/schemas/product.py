from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    offer_percentage: Decimal = Field(default=Decimal(0), ge=0, le=100)
    stock_quantity: int = Field(default=0, ge=0)


class ProductResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    offer_percentage: Decimal
    stock_quantity: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
