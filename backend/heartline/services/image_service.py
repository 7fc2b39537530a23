import logging
import mimetypes
import uuid
from typing import List

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heartline.core.config import settings
from heartline.core.responses import ok
from heartline.db.models.image import UserImage

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

def _image_extension(file: UploadFile) -> str:
    filename = file.filename or ""
    content_type = file.content_type or ""

    if not content_type.startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"File type not allowed: {content_type or 'unknown'}")

    # 1. Extension from the file name
    if "." in filename:
        ext = filename.rsplit(".", 1)[1].lower()
    else:
        # 2. Otherwise guess it from the MIME type
        guessed_ext = mimetypes.guess_extension(content_type)
        ext = guessed_ext.lstrip(".").lower() if guessed_ext else "jpg"

    if ext in ("jpe", "jpeg"):
        ext = "jpg"
    if ext not in ALLOWED_EXTENSIONS:
        # The MIME type says image, so store it as jpg
        ext = "jpg"
    return ext

async def _read_upload(file: UploadFile) -> tuple:
    ext = _image_extension(file)
    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Empty file: {file.filename}")
    return f"{uuid.uuid4().hex}.{ext}", data, file.content_type

async def _serialize(image: UserImage, storage) -> dict:
    return {
        "key": image.key,
        "url": await storage.presigned_url(image.object_name),
        "contentType": image.content_type,
        "createdAt": image.created_at,
    }

async def upload_images(db: AsyncSession, user_id: int, files: List[UploadFile], storage) -> dict:
    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload at least one image.")
    if len(files) > settings.max_images_per_upload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"You can upload up to {settings.max_images_per_upload} images at a time.",
        )

    # Validate everything before touching storage
    prepared = [await _read_upload(f) for f in files]

    uploaded: List[str] = []
    try:
        for key, data, content_type in prepared:
            object_name = f"{user_id}/{key}"
            await storage.upload(object_name, data, content_type)
            uploaded.append(object_name)
    except Exception:
        logger.exception("Image upload for user %s failed", user_id)
        for object_name in uploaded:
            try:
                await storage.delete(object_name)
            except Exception:
                logger.warning("Could not clean up %s", object_name)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Image upload failed.")

    images = [UserImage(user_id=user_id, key=key, content_type=content_type) for key, _, content_type in prepared]
    db.add_all(images)
    await db.commit()

    items = [await _serialize(image, storage) for image in images]
    return ok("Images uploaded successfully.", images=items)

async def _get_owned_image(db: AsyncSession, user_id: int, key: str) -> UserImage:
    result = await db.execute(select(UserImage).where(UserImage.key == key, UserImage.user_id == user_id))
    image = result.scalar_one_or_none()
    if not image:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found.")
    return image

async def replace_image(db: AsyncSession, user_id: int, key: str, files: List[UploadFile], storage) -> dict:
    image = await _get_owned_image(db, user_id, key)
    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload an image.")

    new_key, data, content_type = await _read_upload(files[0])
    old_object = image.object_name
    try:
        await storage.upload(f"{user_id}/{new_key}", data, content_type)
    except Exception:
        logger.exception("Replacing image %s for user %s failed", key, user_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Image upload failed.")

    image.key = new_key
    image.content_type = content_type
    await db.commit()

    try:
        await storage.delete(old_object)
    except Exception:
        logger.warning("Could not delete replaced object %s", old_object)

    return ok("Image replaced successfully.", image=await _serialize(image, storage))

async def list_images(db: AsyncSession, user_id: int, storage) -> dict:
    result = await db.execute(
        select(UserImage).where(UserImage.user_id == user_id).order_by(UserImage.created_at, UserImage.id)
    )
    images = result.scalars().all()
    items = [await _serialize(image, storage) for image in images]
    return ok("Images fetched successfully.", images=items)

async def delete_image(db: AsyncSession, user_id: int, key: str, storage) -> dict:
    image = await _get_owned_image(db, user_id, key)
    object_name = image.object_name

    # Drop the row first so it never points at a missing object
    await db.delete(image)
    await db.commit()

    try:
        await storage.delete(object_name)
    except Exception:
        logger.warning("Could not delete object %s", object_name)

    return ok("Image deleted successfully.", key=key)
