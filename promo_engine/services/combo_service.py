
import logging
from sqlalchemy.orm import Session
from typing import List, Optional
from decimal import Decimal
from fastapi import HTTPException
from promo_engine.models.combo import Combo, ComboItem
from promo_engine.schemas.combo import ComboCreate, ComboUpdate
from promo_engine.services.discount_rule import discount_rule_from_fields
from promo_engine.services.domain import ComboDefinition, ComboLine

logger = logging.getLogger(__name__)


class ComboService:
    """Service class for CRUD operations on combo offers"""

    @staticmethod
    def create_combo(db: Session, combo_data: ComboCreate) -> Combo:
        ComboService._validate_combo(
            combo_data.discount_type, combo_data.discount_value, combo_data.start_date, combo_data.end_date,
        )
        db_combo = Combo(
            title=combo_data.title,
            description=combo_data.description,
            discount_type=combo_data.discount_type,
            discount_value=combo_data.discount_value,
            is_active=True if combo_data.is_active is None else combo_data.is_active,
            start_date=combo_data.start_date,
            end_date=combo_data.end_date,
            items=[ComboItem(product_id=i.product_id, quantity=i.quantity) for i in combo_data.items],
        )
        db.add(db_combo)
        db.commit()
        db.refresh(db_combo)
        logger.info("Created combo %s (%s)", db_combo.id, db_combo.title)
        return db_combo

    @staticmethod
    def get_combo(db: Session, combo_id: int) -> Optional[Combo]:
        return db.query(Combo).filter(Combo.id == combo_id).first()

    @staticmethod
    def get_combos(db: Session, skip: int = 0, limit: int = 100) -> List[Combo]:
        limit = min(max(limit, 1), 500)
        return db.query(Combo).order_by(Combo.id).offset(skip).limit(limit).all()

    @staticmethod
    def update_combo(db: Session, combo_id: int, combo_data: ComboUpdate) -> Optional[Combo]:
        db_combo = db.query(Combo).filter(Combo.id == combo_id).first()
        if not db_combo:
            return None

        # Compute final fields then validate
        fields = combo_data.model_dump(exclude_unset=True, exclude={"items"})
        final = {
            "discount_type": fields.get("discount_type", db_combo.discount_type),
            "discount_value": fields.get("discount_value", db_combo.discount_value),
            "start_date": fields.get("start_date", db_combo.start_date),
            "end_date": fields.get("end_date", db_combo.end_date),
        }
        ComboService._validate_combo(**final)

        for name, value in fields.items():
            if value is None and name in ("title", "discount_type", "discount_value", "is_active"):
                continue
            setattr(db_combo, name, value)
        if combo_data.items is not None:
            db_combo.items = [ComboItem(product_id=i.product_id, quantity=i.quantity) for i in combo_data.items]

        db.commit()
        db.refresh(db_combo)
        return db_combo

    @staticmethod
    def delete_combo(db: Session, combo_id: int) -> bool:
        db_combo = db.query(Combo).filter(Combo.id == combo_id).first()
        if not db_combo:
            return False
        db.delete(db_combo)
        db.commit()
        logger.info("Deleted combo %s", combo_id)
        return True

    @staticmethod
    def to_definition(combo: Combo) -> ComboDefinition:
        return ComboDefinition(
            id=combo.id,
            title=combo.title,
            discount_rule=discount_rule_from_fields(combo.discount_type, combo.discount_value),
            is_active=combo.is_active,
            start_date=combo.start_date,
            end_date=combo.end_date,
            lines=[ComboLine(item_id=i.product_id, quantity=i.quantity) for i in combo.items],
        )

    @staticmethod
    def _validate_combo(discount_type: str, discount_value, start_date, end_date) -> None:
        if discount_type not in ("percentage", "fixed"):
            raise HTTPException(status_code=400, detail="discount_type must be 'percentage' or 'fixed'")
        if discount_value is None or Decimal(discount_value) < 0:
            raise HTTPException(status_code=400, detail="discount_value must be a non-negative number")
        if discount_type == "percentage" and Decimal(discount_value) > 100:
            raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100")
        if start_date and end_date and end_date < start_date:
            raise HTTPException(status_code=400, detail="end_date cannot be before start_date")
