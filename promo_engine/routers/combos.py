
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from promo_engine.database import get_db
from promo_engine.dependencies import get_definition_cache, get_now
from promo_engine.models.combo import Combo
from promo_engine.schemas.cart import CartLineResponse
from promo_engine.schemas.combo import (
    ComboCreate, ComboUpdate, ComboResponse, ComboItemResponse, ComboPricingResponse,
    ComboLinePriceResponse, ComboCartLinesResponse,
)
from promo_engine.services.cache import DefinitionCache
from promo_engine.services.catalog_service import CatalogService
from promo_engine.services.combo_pricer import add_combo_to_cart, price_combo
from promo_engine.services.combo_service import ComboService
from promo_engine.services.money import money_str
from promo_engine.services.offer_window import OfferStatus, classify_offer_window

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/combos", tags=["combos"])


def _combo_fields(combo: Combo) -> dict:
    return {
        "id": combo.id,
        "title": combo.title,
        "description": combo.description,
        "discount_type": combo.discount_type,
        "discount_value": combo.discount_value,
        "is_active": combo.is_active,
        "start_date": combo.start_date,
        "end_date": combo.end_date,
        "created_at": combo.created_at,
        "items": [ComboItemResponse(product_id=i.product_id, quantity=i.quantity) for i in combo.items],
    }


def _with_status(fields: dict, now: datetime) -> ComboResponse:
    # status is derived per request and never cached
    status = classify_offer_window(fields["is_active"], fields["start_date"], fields["end_date"], now)
    return ComboResponse(**fields, status=status.value)


def _get_or_404(db: Session, combo_id: int) -> Combo:
    c = ComboService.get_combo(db, combo_id)
    if not c:
        raise HTTPException(status_code=404, detail="Combo not found")
    return c


@router.post("", response_model=ComboResponse, status_code=201)
def create_combo(combo: ComboCreate, db: Session = Depends(get_db), now: datetime = Depends(get_now),
                 cache: DefinitionCache = Depends(get_definition_cache)):
    created = ComboService.create_combo(db, combo)
    cache.invalidate()
    return _with_status(_combo_fields(created), now)


@router.get("", response_model=List[ComboResponse])
def list_combos(status: Optional[OfferStatus] = None, skip: int = 0, limit: int = 100,
                db: Session = Depends(get_db), now: datetime = Depends(get_now),
                cache: DefinitionCache = Depends(get_definition_cache)):
    rows = cache.get_or_load(
        f"combos:{skip}:{limit}",
        lambda: [_combo_fields(c) for c in ComboService.get_combos(db, skip, limit)],
    )
    combos = [_with_status(fields, now) for fields in rows]
    if status is not None:
        combos = [c for c in combos if c.status == status.value]
    return combos


@router.get("/{combo_id}", response_model=ComboResponse)
def get_combo(combo_id: int, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    return _with_status(_combo_fields(_get_or_404(db, combo_id)), now)


@router.put("/{combo_id}", response_model=ComboResponse)
def update_combo(combo_id: int, payload: ComboUpdate, db: Session = Depends(get_db),
                 now: datetime = Depends(get_now), cache: DefinitionCache = Depends(get_definition_cache)):
    updated = ComboService.update_combo(db, combo_id, payload)
    if not updated:
        raise HTTPException(status_code=404, detail="Combo not found")
    cache.invalidate()
    return _with_status(_combo_fields(updated), now)


@router.delete("/{combo_id}", status_code=204)
def delete_combo(combo_id: int, db: Session = Depends(get_db),
                 cache: DefinitionCache = Depends(get_definition_cache)):
    ok = ComboService.delete_combo(db, combo_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Combo not found")
    cache.invalidate()
    return


@router.get("/{combo_id}/pricing", response_model=ComboPricingResponse)
def get_combo_pricing(combo_id: int, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    c = _get_or_404(db, combo_id)
    definition = ComboService.to_definition(c)
    lookup = CatalogService.catalog_lookup(db, [line.item_id for line in definition.lines])
    pricing = price_combo(definition, lookup)
    status = classify_offer_window(definition.is_active, definition.start_date, definition.end_date, now)

    return ComboPricingResponse(
        combo_id=c.id,
        status=status.value,
        lines=[
            ComboLinePriceResponse(
                item_id=line.item_id,
                quantity=line.quantity,
                unit_price=money_str(line.unit_price),
                line_total=money_str(line.line_total),
                allocated_discount=money_str(line.allocated_discount),
                discounted_total=money_str(line.discounted_total),
            )
            for line in pricing.lines
        ],
        bundle_subtotal=money_str(pricing.bundle_subtotal),
        bundle_discount=money_str(pricing.bundle_discount),
        bundle_discounted_total=money_str(pricing.bundle_discounted_total),
        missing_item_ids=[w.item_id for w in pricing.warnings],
    )


@router.post("/{combo_id}/cart-lines", response_model=ComboCartLinesResponse)
def combo_cart_lines(combo_id: int, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    c = _get_or_404(db, combo_id)
    definition = ComboService.to_definition(c)
    status = classify_offer_window(definition.is_active, definition.start_date, definition.end_date, now)
    if status != OfferStatus.ACTIVE:
        raise HTTPException(status_code=409, detail=f"Combo is not currently available ({status.value})")

    lookup = CatalogService.catalog_lookup(db, [line.item_id for line in definition.lines])
    lines = add_combo_to_cart(definition, lookup)
    present = {line.item_id for line in lines}
    return ComboCartLinesResponse(
        combo_id=c.id,
        items=[CartLineResponse.from_domain(line) for line in lines],
        missing_item_ids=[line.item_id for line in definition.lines if line.item_id not in present],
    )
