"""Queries over the canonical video rows."""
from typing import Sequence
from sqlalchemy import select, func, or_, update, and_
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import NotFoundError
from app.models.video import Video, BLOCKED, NOT_BLOCKED, REVIEW_APPROVED

CANDIDATE_WINDOW = 200

def public_filter():
    return and_(Video.is_blocked == NOT_BLOCKED, Video.review_status == REVIEW_APPROVED)

async def create(db: AsyncSession, video: Video) -> Video:
    db.add(video)
    await db.flush()
    return video

async def find_by_id(db: AsyncSession, video_no: int) -> Video | None:
    return await db.get(Video, video_no)

async def get_or_raise(db: AsyncSession, video_no: int) -> Video:
    video = await db.get(Video, video_no)
    if video is None:
        raise NotFoundError(f"video not found: {video_no}")
    return video

def locked_by_id(video_no: int):
    return select(Video).where(Video.video_no == video_no).with_for_update()

async def lock_or_raise(db: AsyncSession, video_no: int) -> Video:
    """Load the row under a write lock held until the caller commits."""
    res = await db.execute(locked_by_id(video_no).execution_options(populate_existing=True))
    video = res.scalar_one_or_none()
    if video is None:
        raise NotFoundError(f"video not found: {video_no}")
    return video

async def find_by_user(db: AsyncSession, user_no: int) -> list[Video]:
    res = await db.execute(
        select(Video).where(Video.user_no == user_no)
        .order_by(Video.upload_date.desc(), Video.video_no.desc())
    )
    return list(res.scalars().all())

async def find_recent_public(db: AsyncSession, limit: int = CANDIDATE_WINDOW) -> list[Video]:
    res = await db.execute(
        select(Video).where(public_filter())
        .order_by(Video.created_at.desc(), Video.video_no.desc())
        .limit(limit)
    )
    return list(res.scalars().all())

async def find_by_is_blocked(db: AsyncSession, flag: str = BLOCKED) -> list[Video]:
    res = await db.execute(select(Video).where(Video.is_blocked == flag).order_by(Video.video_no.desc()))
    return list(res.scalars().all())

def _search_conditions(keyword: str | None, tags: Sequence[str] | None):
    conds = [public_filter()]
    if keyword and keyword.strip():
        conds.append(func.lower(Video.title).contains(keyword.strip().lower(), autoescape=True))
    tag_set = [t for t in (tags or []) if t]
    if tag_set:
        conds.append(or_(
            Video.tag1.in_(tag_set), Video.tag2.in_(tag_set), Video.tag3.in_(tag_set),
            Video.tag4.in_(tag_set), Video.tag5.in_(tag_set),
        ))
    return conds

async def search_public(db: AsyncSession, keyword: str | None, tags: Sequence[str] | None,
                        page: int, size: int) -> tuple[list[Video], int]:
    """Page of public videos, newest upload first, with the total match count."""
    conds = _search_conditions(keyword, tags)
    total = (await db.execute(select(func.count()).select_from(Video).where(*conds))).scalar_one()
    res = await db.execute(
        select(Video).where(*conds)
        .order_by(Video.upload_date.desc(), Video.video_no.desc())
        .offset(page * size).limit(size)
    )
    return list(res.scalars().all()), total

async def count_public(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(Video).where(public_filter()))).scalar_one()

async def top_public_by(db: AsyncSession, column) -> Video | None:
    res = await db.execute(
        select(Video).where(public_filter())
        .order_by(column.desc(), Video.video_no.desc())
        .limit(1)
    )
    return res.scalars().first()

async def increase_view_count(db: AsyncSession, video_no: int) -> int:
    await get_or_raise(db, video_no)
    await db.execute(
        update(Video).where(Video.video_no == video_no)
        .values(view_count=Video.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(select(Video.view_count).where(Video.video_no == video_no))
    return res.scalar_one()
