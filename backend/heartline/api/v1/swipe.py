from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from heartline.db.database import get_db
from heartline.services import swipe_service
from heartline.schemas.social import SwipeRequest
from heartline.core.responses import ok
from heartline.core.security import get_current_user_id

router = APIRouter(tags=["swipe"])

@router.post("/swipeLeft")
async def swipe_left(
    swipe_in: SwipeRequest,
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await swipe_service.swipe(db, current_user_id, swipe_in.targetUserId, swipe_service.LEFT)

@router.post("/swipeRight")
async def swipe_right(
    swipe_in: SwipeRequest,
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Like a user. A reciprocated like creates a match."""
    return await swipe_service.swipe(db, current_user_id, swipe_in.targetUserId, swipe_service.RIGHT)

@router.get("/discover")
async def discover(
    limit: int = Query(20, ge=1, le=100),
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Profiles the caller has not swiped on yet."""
    users = await swipe_service.discover(db, current_user_id, limit)
    return ok("Profiles fetched successfully.", users=users)

@router.get("/matches")
async def matches(current_user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    return ok("Matches fetched successfully.", matches=await swipe_service.get_matches(db, current_user_id))
