import logging
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from heartline.core.responses import ok
from heartline.db.models.swipe import Swipe, Match
from heartline.db.models.user import User
from heartline.services.user_service import serialize_user

logger = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"

def _public_card(user: User) -> dict:
    card = serialize_user(user)
    card.pop("phoneOrEmail", None)
    card.pop("role", None)
    return card

async def _find_swipe(db: AsyncSession, swiper_id: int, target_id: int):
    result = await db.execute(
        select(Swipe).where(Swipe.swiper_id == swiper_id, Swipe.target_id == target_id)
    )
    return result.scalar_one_or_none()

async def _ensure_match(db: AsyncSession, user_a: int, user_b: int) -> Match:
    user1_id, user2_id = sorted((user_a, user_b))
    result = await db.execute(
        select(Match).where(Match.user1_id == user1_id, Match.user2_id == user2_id)
    )
    match = result.scalar_one_or_none()
    if match:
        return match

    match = Match(user1_id=user1_id, user2_id=user2_id)
    db.add(match)
    try:
        await db.commit()
    except IntegrityError:
        # The other side created it first
        await db.rollback()
        result = await db.execute(
            select(Match).where(Match.user1_id == user1_id, Match.user2_id == user2_id)
        )
        return result.scalar_one()
    await db.refresh(match)
    logger.info("New match %s between users %s and %s", match.id, user1_id, user2_id)
    return match

async def swipe(db: AsyncSession, swiper_id: int, target_id: int, direction: str) -> dict:
    if swiper_id == target_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot swipe on yourself.")

    target = await db.get(User, target_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Target user not found.")
    target_card = _public_card(target)

    # A repeated swipe replaces the earlier direction
    existing = await _find_swipe(db, swiper_id, target_id)
    if existing:
        existing.direction = direction
        await db.commit()
    else:
        db.add(Swipe(swiper_id=swiper_id, target_id=target_id, direction=direction))
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            existing = await _find_swipe(db, swiper_id, target_id)
            existing.direction = direction
            await db.commit()

    if direction == LEFT:
        return ok("Swiped left.", match=False)

    reciprocal = await _find_swipe(db, target_id, swiper_id)
    if reciprocal and reciprocal.direction == RIGHT:
        match = await _ensure_match(db, swiper_id, target_id)
        return ok("It's a match!", match=True, matchId=match.id, matchedUser=target_card)

    return ok("Swiped right.", match=False)

async def discover(db: AsyncSession, user_id: int, limit: int = 20) -> list:
    """
    Verified users the caller has not swiped on yet, filtered by the
    caller's preferred genders and by theirs.
    """
    me = await db.get(User, user_id)
    if not me:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    swiped = select(Swipe.target_id).where(Swipe.swiper_id == user_id)
    stmt = (
        select(User)
        .where(
            User.id != user_id,
            User.is_verified.is_(True),
            User.gender.in_(me.preferred_genders or []),
            User.id.not_in(swiped),
        )
        .order_by(User.created_at.desc(), User.id.desc())
    )
    result = await db.execute(stmt)
    candidates = result.scalars().all()

    cards = []
    for user in candidates:
        if user.preferred_genders and me.gender not in user.preferred_genders:
            continue
        cards.append(_public_card(user))
        if len(cards) >= limit:
            break
    return cards

async def get_matches(db: AsyncSession, user_id: int) -> list:
    stmt = select(Match).where(or_(Match.user1_id == user_id, Match.user2_id == user_id))
    result = await db.execute(stmt)
    matches = result.scalars().all()

    other_ids = {}
    for m in matches:
        other_id = m.user2_id if m.user1_id == user_id else m.user1_id
        other_ids[other_id] = m

    if not other_ids:
        return []

    user_res = await db.execute(select(User).where(User.id.in_(list(other_ids))))
    users = user_res.scalars().all()

    return [
        {"matchId": other_ids[u.id].id, "matchedAt": other_ids[u.id].created_at, "user": _public_card(u)}
        for u in users
    ]
