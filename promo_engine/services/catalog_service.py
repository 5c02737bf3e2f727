
from sqlalchemy.orm import Session
from typing import Iterable, List, Optional
from promo_engine.models.product import Product
from promo_engine.schemas.product import ProductCreate
from promo_engine.services.domain import CatalogItem, CatalogLookup
from promo_engine.services.money import D


class CatalogService:
    """Product storage and the catalog lookup the pricing engine consumes"""

    @staticmethod
    def create_product(db: Session, product_data: ProductCreate) -> Product:
        db_product = Product(**product_data.model_dump())
        db.add(db_product)
        db.commit()
        db.refresh(db_product)
        return db_product

    @staticmethod
    def get_product(db: Session, product_id: int) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    @staticmethod
    def get_products(db: Session, skip: int = 0, limit: int = 100) -> List[Product]:
        limit = min(max(limit, 1), 500)
        return db.query(Product).order_by(Product.id).offset(skip).limit(limit).all()

    @staticmethod
    def to_catalog_item(product: Product) -> CatalogItem:
        return CatalogItem(
            id=product.id,
            base_price=D(product.price),
            sale_percentage=D(product.offer_percentage or 0),
            stock_quantity=product.stock_quantity or 0,
        )

    @staticmethod
    def catalog_lookup(db: Session, item_ids: Iterable[int]) -> CatalogLookup:
        """Load the given products once and return a lookup over that snapshot."""
        ids = sorted(set(item_ids))
        rows = db.query(Product).filter(Product.id.in_(ids)).all() if ids else []
        snapshot = {p.id: CatalogService.to_catalog_item(p) for p in rows}
        return snapshot.get
