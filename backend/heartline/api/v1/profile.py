from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from heartline.db.database import get_db
from heartline.services import user_service
from heartline.schemas.user import ProfileUpdate
from heartline.core.security import get_current_user_id

router = APIRouter(tags=["profile"])

@router.get("/profile")
async def read_profile(current_user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    return await user_service.get_profile(db, current_user_id)

@router.put("/profile")
async def update_profile(
    profile_in: ProfileUpdate,
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update any subset of the caller's profile fields."""
    return await user_service.update_profile(db, current_user_id, profile_in)
