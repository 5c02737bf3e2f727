
from sqlalchemy import Column, Integer, String, Text, Enum, Boolean, JSON, Numeric, Date, Index
from promo_engine.database import Base

DiscountTypes = ("percentage", "fixed")


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    discount_type = Column(Enum(*DiscountTypes, name="coupon_discount_type"), nullable=False, index=True)
    discount_value = Column(Numeric(12, 2), nullable=False)
    min_purchase_amount = Column(Numeric(12, 2), default=0, nullable=False)
    max_discount_amount = Column(Numeric(12, 2), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    usage_limit = Column(Integer, nullable=True)
    times_used = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    # optional allow-list of product ids; NULL applies to the whole cart
    product_ids = Column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_coupons_active_type", "is_active", "discount_type"),
    )
