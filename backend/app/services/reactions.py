import logging
from dataclasses import dataclass
from typing import Iterable
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import DomainError
from app.models.video import Video, VideoReaction, REACTION_LIKE, REACTION_DISLIKE
from app.services import catalogue

logger = logging.getLogger(__name__)

ACTIONS = (REACTION_LIKE, REACTION_DISLIKE)

@dataclass
class ReactionResult:
    like_count: int
    dislike_count: int
    my_reaction: str | None

def parse_action(action: str | None) -> str:
    value = (action or '').strip().upper()
    if value not in ACTIONS:
        raise DomainError(f"invalid reaction action: {action}")
    return value

async def find_reaction(db: AsyncSession, video_no: int, user_no: int) -> VideoReaction | None:
    res = await db.execute(
        select(VideoReaction).where(VideoReaction.video_no == video_no, VideoReaction.user_no == user_no)
    )
    return res.scalar_one_or_none()

async def reactions_for_user(db: AsyncSession, user_no: int, video_nos: Iterable[int]) -> dict[int, str]:
    """One round-trip: ``video_no -> reaction_type`` for the given videos."""
    ids = list(video_nos)
    if not ids:
        return {}
    res = await db.execute(
        select(VideoReaction.video_no, VideoReaction.reaction_type)
        .where(VideoReaction.user_no == user_no, VideoReaction.video_no.in_(ids))
    )
    return {vno: kind for vno, kind in res.all()}

async def count_reactions(db: AsyncSession, video_no: int) -> tuple[int, int]:
    res = await db.execute(
        select(VideoReaction.reaction_type, func.count())
        .where(VideoReaction.video_no == video_no)
        .group_by(VideoReaction.reaction_type)
    )
    counts = dict(res.all())
    return counts.get(REACTION_LIKE, 0), counts.get(REACTION_DISLIKE, 0)

async def delete_by_video(db: AsyncSession, video_no: int) -> None:
    await db.execute(delete(VideoReaction).where(VideoReaction.video_no == video_no))

async def toggle(db: AsyncSession, user_no: int, video_no: int, action: str) -> ReactionResult:
    """Insert, flip or remove the caller's reaction, then rebuild both counters from the ledger."""
    kind = parse_action(action)
    video: Video = await catalogue.lock_or_raise(db, video_no)
    current = await find_reaction(db, video_no, user_no)
    if current is not None and current.reaction_type == kind:
        await db.delete(current)
        mine = None
    elif current is not None:
        current.reaction_type = kind
        mine = kind
    else:
        db.add(VideoReaction(video_no=video_no, user_no=user_no, reaction_type=kind))
        mine = kind
    await db.flush()
    likes, dislikes = await count_reactions(db, video_no)
    video.like_count, video.dislike_count = likes, dislikes
    await db.commit()
    logger.debug("reaction video_no=%s user_no=%s -> %s (%d/%d)", video_no, user_no, mine, likes, dislikes)
    return ReactionResult(like_count=likes, dislike_count=dislikes, my_reaction=mine)
