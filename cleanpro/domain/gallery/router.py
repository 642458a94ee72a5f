"""Gallery router - public media list, admin upload and delete"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import Admin, Gallery
from ...storage import media_url
from .service import GalleryService

router = APIRouter(prefix="/api/gallery", tags=["Gallery"])


def get_gallery_service(db: Session = Depends(get_db)) -> GalleryService:
    """Dependency injection for GalleryService"""
    return GalleryService(db)


def _media_json(item: Gallery) -> dict:
    return {
        "ID": item.id,
        "Title": item.title,
        "Description": item.description,
        "Media_Type": item.media_type,
        "Category": item.category,
        "URL": media_url(item.media_key),
        "Created_At": item.created_at.isoformat() if item.created_at else None,
    }


@router.get("/media")
async def list_media(
    category: Optional[str] = Query(None),
    service: GalleryService = Depends(get_gallery_service),
):
    return {"success": True, "media": [_media_json(m) for m in service.get_media(category)]}


@router.post("/upload", status_code=201)
async def upload_media(
    media: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    current_admin: Admin = Depends(get_current_admin),
    service: GalleryService = Depends(get_gallery_service),
):
    """Upload an image or video to the gallery"""
    item = await service.upload(media, current_admin, title, description, category)
    return {"success": True, "message": "Media uploaded successfully", "media": _media_json(item)}


@router.delete("/media/{media_id}")
async def delete_media(
    media_id: int,
    _admin: Admin = Depends(get_current_admin),
    service: GalleryService = Depends(get_gallery_service),
):
    return service.delete(media_id)
