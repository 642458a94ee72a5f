"""Catalog service - Business logic for services and products"""

import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ... import storage
from ...models import Product, Service
from .repository import CatalogRepository
from .schemas import ProductCreate, ProductUpdate, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


class CatalogService:
    """Service layer for the service and product catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    # ========================================================================
    # SERVICES
    # ========================================================================

    def get_services(self, available_only: bool, category: Optional[str] = None, search: Optional[str] = None):
        return self.repo.get_services(self.db, available_only, category, search)

    def get_service(self, service_id: int, available_only: bool = False) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service or (available_only and not service.is_available):
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.create_item(
            self.db,
            Service,
            name=data.Name,
            description=_clean(data.Description),
            duration=data.Duration,
            category=_clean(data.Category),
            is_available=data.Is_Available,
        )
        logger.info(f"✅ Service {service.id} created: {service.name}")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)

        updates = {}
        if data.Name is not None:
            updates["name"] = data.Name
        if data.Description is not None:
            updates["description"] = _clean(data.Description)
        if data.Duration is not None:
            updates["duration"] = data.Duration
        if data.Category is not None:
            updates["category"] = _clean(data.Category)
        if data.Is_Available is not None:
            updates["is_available"] = data.Is_Available

        return self.repo.update_item(self.db, service, **updates)

    def set_service_availability(self, service_id: int, is_available: bool) -> Service:
        service = self.get_service(service_id)
        logger.info(f"📥 Service {service.id} availability -> {is_available}")
        return self.repo.update_item(self.db, service, is_available=is_available)

    def delete_service(self, service_id: int) -> dict:
        service = self.get_service(service_id)
        if self.repo.service_has_bookings(self.db, service.id):
            raise HTTPException(
                status_code=409,
                detail="This service has bookings and cannot be deleted. Mark it unavailable instead.",
            )

        image_key = service.image_key
        self.repo.delete_item(self.db, service)
        storage.delete_object(image_key)
        logger.info(f"🗑️ Service {service_id} deleted")
        return {"success": True, "message": "Service deleted successfully"}

    # ========================================================================
    # PRODUCTS
    # ========================================================================

    def get_products(self, available_only: bool, category: Optional[str] = None, search: Optional[str] = None):
        return self.repo.get_products(self.db, available_only, category, search)

    def get_product(self, product_id: int, available_only: bool = False) -> Product:
        product = self.repo.get_product_by_id(self.db, product_id)
        if not product or (available_only and not product.is_available):
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    def create_product(self, data: ProductCreate) -> Product:
        product = self.repo.create_item(
            self.db,
            Product,
            name=data.Name,
            description=_clean(data.Description),
            price=data.Price,
            stock_quantity=data.Stock_Quantity,
            category=_clean(data.Category),
            # Out-of-stock products are never available
            is_available=data.Is_Available and data.Stock_Quantity > 0,
        )
        logger.info(f"✅ Product {product.id} created: {product.name}")
        return product

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.get_product(product_id)

        updates = {}
        if data.Name is not None:
            updates["name"] = data.Name
        if data.Description is not None:
            updates["description"] = _clean(data.Description)
        if data.Price is not None:
            updates["price"] = data.Price
        if data.Stock_Quantity is not None:
            updates["stock_quantity"] = data.Stock_Quantity
        if data.Category is not None:
            updates["category"] = _clean(data.Category)
        if data.Is_Available is not None:
            updates["is_available"] = data.Is_Available

        stock = updates.get("stock_quantity", product.stock_quantity)
        if stock == 0:
            if updates.get("is_available"):
                raise HTTPException(status_code=400, detail="A product with no stock cannot be made available.")
            updates["is_available"] = False

        return self.repo.update_item(self.db, product, **updates)

    def set_product_availability(self, product_id: int, is_available: bool) -> Product:
        product = self.get_product(product_id)
        if is_available and product.stock_quantity <= 0:
            raise HTTPException(status_code=400, detail="A product with no stock cannot be made available.")
        return self.repo.update_item(self.db, product, is_available=is_available)

    def delete_product(self, product_id: int) -> dict:
        product = self.get_product(product_id)
        if self.repo.product_has_orders(self.db, product.id):
            raise HTTPException(
                status_code=409,
                detail="This product has orders and cannot be deleted. Mark it unavailable instead.",
            )

        image_key = product.image_key
        self.repo.delete_item(self.db, product)
        storage.delete_object(image_key)
        logger.info(f"🗑️ Product {product_id} deleted")
        return {"success": True, "message": "Product deleted successfully"}

    # ========================================================================
    # IMAGES
    # ========================================================================

    async def replace_image(self, item, folder: str, file: UploadFile):
        """Upload a new image for a service or product and drop the previous one"""
        contents = await storage.read_validated_upload(file, storage.ALLOWED_IMAGE_TYPES, storage.IMAGE_MAX_BYTES)
        key = storage.put_object(folder, file.filename, contents, file.content_type)

        old_key = item.image_key
        item = self.repo.update_item(self.db, item, image_key=key)
        storage.delete_object(old_key)
        return item
