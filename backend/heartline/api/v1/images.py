from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from heartline.db.database import get_db
from heartline.services import image_service
from heartline.core.security import get_current_user_id
from heartline.core.dependencies import get_image_storage

router = APIRouter(tags=["images"])

@router.post("/uploadImage", status_code=status.HTTP_201_CREATED)
async def upload_image(
    images: Optional[List[UploadFile]] = File(None),
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_image_storage),
):
    """Upload up to five profile images."""
    return await image_service.upload_images(db, current_user_id, images or [], storage)

@router.put("/replace/{key}")
async def replace_image(
    key: str,
    images: Optional[List[UploadFile]] = File(None),
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_image_storage),
):
    return await image_service.replace_image(db, current_user_id, key, images or [], storage)

@router.get("/getImages")
async def get_images(
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_image_storage),
):
    return await image_service.list_images(db, current_user_id, storage)

@router.delete("/remove/{key}")
async def remove_image(
    key: str,
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_image_storage),
):
    return await image_service.delete_image(db, current_user_id, key, storage)
