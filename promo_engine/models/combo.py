
from sqlalchemy import Column, Integer, String, Text, Enum, Boolean, Numeric, Date, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from promo_engine.database import Base

DiscountTypes = ("percentage", "fixed")


class Combo(Base):
    __tablename__ = "combos"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    discount_type = Column(Enum(*DiscountTypes, name="combo_discount_type"), nullable=False, default="percentage")
    discount_value = Column(Numeric(12, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    # status is derived from these on every read, never stored
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship("ComboItem", back_populates="combo", cascade="all, delete-orphan", lazy="selectin")

    __table_args__ = (
        Index("ix_combos_active_dates", "is_active", "start_date", "end_date"),
    )


class ComboItem(Base):
    __tablename__ = "combo_items"

    id = Column(Integer, primary_key=True)
    combo_id = Column(Integer, ForeignKey("combos.id", ondelete="CASCADE"), nullable=False, index=True)
    # no FK to products: a deleted product must leave a reportable gap, not vanish
    product_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    combo = relationship("Combo", back_populates="items")
