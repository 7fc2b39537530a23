from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from heartline.db.database import get_db
from heartline.services import community_service
from heartline.schemas.social import JoinCommunityRequest
from heartline.core.security import get_current_user_id

router = APIRouter(tags=["community"])

@router.get("/getCommunity")
async def get_communities(current_user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    return await community_service.get_communities(db, current_user_id)

@router.post("/joinCommunity")
async def join_community(
    join_in: JoinCommunityRequest,
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await community_service.join_community(db, current_user_id, join_in.communityId)
