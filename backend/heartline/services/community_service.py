from fastapi import HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from heartline.core.responses import ok
from heartline.db.models.community import Community, CommunityMember

async def get_communities(db: AsyncSession, user_id: int) -> dict:
    """All communities with member counts and whether the caller joined."""
    count_stmt = (
        select(CommunityMember.community_id, func.count(CommunityMember.id))
        .group_by(CommunityMember.community_id)
    )
    counts = dict((await db.execute(count_stmt)).all())

    joined_stmt = select(CommunityMember.community_id).where(CommunityMember.user_id == user_id)
    joined = set((await db.execute(joined_stmt)).scalars().all())

    result = await db.execute(select(Community).order_by(Community.name))
    communities = result.scalars().all()

    return ok(
        "Communities fetched successfully.",
        communities=[
            {
                "id": c.id,
                "name": c.name,
                "description": c.description,
                "memberCount": counts.get(c.id, 0),
                "joined": c.id in joined,
            }
            for c in communities
        ],
    )

async def is_member(db: AsyncSession, community_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(CommunityMember.id).where(
            CommunityMember.community_id == community_id,
            CommunityMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none() is not None

async def get_member_ids(db: AsyncSession, community_id: int) -> list:
    result = await db.execute(
        select(CommunityMember.user_id).where(CommunityMember.community_id == community_id)
    )
    return list(result.scalars().all())

async def get_community_or_404(db: AsyncSession, community_id: int) -> Community:
    community = await db.get(Community, community_id)
    if not community:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Community not found.")
    return community

async def join_community(db: AsyncSession, user_id: int, community_id: int) -> dict:
    community = await get_community_or_404(db, community_id)

    db.add(CommunityMember(community_id=community.id, user_id=user_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already a member of this community.")

    return ok(f"Joined {community.name}.", communityId=community.id)
