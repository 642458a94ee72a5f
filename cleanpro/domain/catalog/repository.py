"""Catalog repository - Database operations for services and products"""

from typing import Optional, Union

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Booking, Order, Product, Service

CatalogItem = Union[Service, Product]


class CatalogRepository:
    """Repository for service and product database operations"""

    @staticmethod
    def _filtered(db: Session, model, available_only: bool, category: Optional[str], search: Optional[str]):
        query = db.query(model)
        if available_only:
            query = query.filter(model.is_available.is_(True))
        if category:
            query = query.filter(func.lower(model.category) == category.strip().lower())
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(model.name.ilike(pattern), model.description.ilike(pattern)))
        return query.order_by(model.name.asc())

    @staticmethod
    def get_services(
        db: Session, available_only: bool = False, category: Optional[str] = None, search: Optional[str] = None
    ) -> list[Service]:
        return CatalogRepository._filtered(db, Service, available_only, category, search).all()

    @staticmethod
    def get_service_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_products(
        db: Session, available_only: bool = False, category: Optional[str] = None, search: Optional[str] = None
    ) -> list[Product]:
        return CatalogRepository._filtered(db, Product, available_only, category, search).all()

    @staticmethod
    def get_product_by_id(db: Session, product_id: int) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    @staticmethod
    def create_item(db: Session, model, **item_data) -> CatalogItem:
        item = model(**item_data)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def update_item(db: Session, item: CatalogItem, **updates) -> CatalogItem:
        for key, value in updates.items():
            if hasattr(item, key):
                setattr(item, key, value)

        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def delete_item(db: Session, item: CatalogItem) -> None:
        db.delete(item)
        db.commit()

    @staticmethod
    def service_has_bookings(db: Session, service_id: int) -> bool:
        return db.query(Booking.id).filter(Booking.service_id == service_id).first() is not None

    @staticmethod
    def product_has_orders(db: Session, product_id: int) -> bool:
        return db.query(Order.id).filter(Order.product_id == product_id).first() is not None
