"""Gallery service - public media wall managed from the back office"""

import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ... import storage
from ...models import Admin, Gallery

logger = logging.getLogger(__name__)

ALLOWED_MEDIA_TYPES = {**storage.ALLOWED_IMAGE_TYPES, **storage.ALLOWED_VIDEO_TYPES}


class GalleryService:
    """Service layer for gallery media"""

    def __init__(self, db: Session):
        self.db = db

    def get_media(self, category: Optional[str] = None) -> list[Gallery]:
        query = self.db.query(Gallery).filter(Gallery.is_active.is_(True))
        if category:
            query = query.filter(Gallery.category == category.strip().lower())
        return query.order_by(Gallery.created_at.desc(), Gallery.id.desc()).all()

    async def upload(
        self,
        file: UploadFile,
        admin: Admin,
        title: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Gallery:
        contents = await storage.read_validated_upload(file, ALLOWED_MEDIA_TYPES, storage.MEDIA_MAX_BYTES)
        key = storage.put_object("gallery", file.filename, contents, file.content_type)

        item = Gallery(
            title=(title or "").strip() or None,
            description=(description or "").strip() or None,
            media_key=key,
            media_type="video" if file.content_type.startswith("video/") else "image",
            category=(category or "general").strip().lower() or "general",
            uploaded_by=admin.id,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"✅ Gallery item {item.id} uploaded by admin {admin.id}")
        return item

    def delete(self, media_id: int) -> dict:
        item = self.db.query(Gallery).filter(Gallery.id == media_id).first()
        if not item:
            raise HTTPException(status_code=404, detail="Media not found")

        key = item.media_key
        self.db.delete(item)
        self.db.commit()
        storage.delete_object(key)
        logger.info(f"🗑️ Gallery item {media_id} deleted")
        return {"success": True, "message": "Media deleted successfully"}
