
from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.sql import func
from promo_engine.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    # ongoing product-level sale, independent of combos and coupons
    offer_percentage = Column(Numeric(5, 2), default=0, nullable=False)
    stock_quantity = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
