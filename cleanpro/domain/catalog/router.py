"""Catalog routers - public browsing and admin management of services and products"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import Admin
from .schemas import (
    AvailabilityUpdate,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    ServiceCreate,
    ServiceOut,
    ServiceUpdate,
)
from .service import CatalogService

logger = logging.getLogger(__name__)

public_router = APIRouter(prefix="/api/public", tags=["Catalog"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin Catalog"])

__all__ = ["public_router", "admin_router"]


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


def _service_json(service) -> dict:
    return ServiceOut.from_service(service).model_dump(mode="json")


def _product_json(product) -> dict:
    return ProductOut.from_product(product).model_dump(mode="json")


# ============================================================================
# PUBLIC CATALOG
# ============================================================================


@public_router.get("/services")
async def list_public_services(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Available services, by name"""
    services = catalog.get_services(True, category, search)
    return {"success": True, "services": [_service_json(s) for s in services]}


@public_router.get("/services/{service_id}")
async def get_public_service(service_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    return {"success": True, "service": _service_json(catalog.get_service(service_id, available_only=True))}


@public_router.get("/products")
async def list_public_products(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    catalog: CatalogService = Depends(get_catalog_service),
):
    products = catalog.get_products(True, category, search)
    return {"success": True, "products": [_product_json(p) for p in products]}


@public_router.get("/products/{product_id}")
async def get_public_product(product_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    return {"success": True, "product": _product_json(catalog.get_product(product_id, available_only=True))}


# ============================================================================
# ADMIN SERVICES
# ============================================================================


@admin_router.post("/services", status_code=201)
async def create_service(
    data: ServiceCreate,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    service = catalog.create_service(data)
    return {"success": True, "message": "Service created successfully", "service": _service_json(service)}


@admin_router.get("/services")
async def list_services(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """All services, including unavailable ones"""
    services = catalog.get_services(False, category, search)
    return {"success": True, "services": [_service_json(s) for s in services]}


@admin_router.get("/services/{service_id}")
async def get_service(
    service_id: int,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return {"success": True, "service": _service_json(catalog.get_service(service_id))}


@admin_router.put("/services/{service_id}")
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    service = catalog.update_service(service_id, data)
    return {"success": True, "message": "Service updated successfully", "service": _service_json(service)}


@admin_router.patch("/services/{service_id}/availability")
async def set_service_availability(
    service_id: int,
    data: AvailabilityUpdate,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    service = catalog.set_service_availability(service_id, data.Is_Available)
    return {"success": True, "service": _service_json(service)}


@admin_router.post("/services/{service_id}/image")
async def upload_service_image(
    service_id: int,
    image: UploadFile = File(...),
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    service = await catalog.replace_image(catalog.get_service(service_id), "services", image)
    return {"success": True, "message": "Image uploaded successfully", "service": _service_json(service)}


@admin_router.delete("/services/{service_id}")
async def delete_service(
    service_id: int,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.delete_service(service_id)


# ============================================================================
# ADMIN PRODUCTS
# ============================================================================


@admin_router.post("/products", status_code=201)
async def create_product(
    data: ProductCreate,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    product = catalog.create_product(data)
    return {"success": True, "message": "Product created successfully", "product": _product_json(product)}


@admin_router.get("/products")
async def list_products(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    products = catalog.get_products(False, category, search)
    return {"success": True, "products": [_product_json(p) for p in products]}


@admin_router.get("/products/{product_id}")
async def get_product(
    product_id: int,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return {"success": True, "product": _product_json(catalog.get_product(product_id))}


@admin_router.put("/products/{product_id}")
async def update_product(
    product_id: int,
    data: ProductUpdate,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    product = catalog.update_product(product_id, data)
    return {"success": True, "message": "Product updated successfully", "product": _product_json(product)}


@admin_router.patch("/products/{product_id}/availability")
async def set_product_availability(
    product_id: int,
    data: AvailabilityUpdate,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    product = catalog.set_product_availability(product_id, data.Is_Available)
    return {"success": True, "product": _product_json(product)}


@admin_router.post("/products/{product_id}/image")
async def upload_product_image(
    product_id: int,
    image: UploadFile = File(...),
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    product = await catalog.replace_image(catalog.get_product(product_id), "products", image)
    return {"success": True, "message": "Image uploaded successfully", "product": _product_json(product)}


@admin_router.delete("/products/{product_id}")
async def delete_product(
    product_id: int,
    _admin: Admin = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return catalog.delete_product(product_id)
