"""Tag reconciliation for the two feature sources.

GPT_IMAGE runs in-process after approval and only fills empty tag columns.
DESKTOP_ML is pushed by the desktop worker and always rewrites tag1..tag3, clearing tag4/tag5.
"""
import asyncio, logging, os
from typing import Iterable
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from app.ai.image_tags import tags_for_frames
from app.core.errors import DomainError, NotFoundError
from app.db.database import SessionLocal
from app.models.video import Video, VideoFeature, SOURCE_GPT_IMAGE, SOURCE_DESKTOP_ML, TAG_COLUMNS
from app.schemas.features import GptImageTags, DesktopMlTags, AutoTagRequest, DesktopTagTarget
from app.services import feature_store
from app.services.catalogue import public_filter
from app.services.frames import FrameExtractor
from app.services.storage import MediaStore, get_media_store

logger = logging.getLogger(__name__)

MAX_TAGS = 5
MAX_AUTO_TAGS = 3
MIN_SCORE_FOR_TAG = 0.40
PENDING_WINDOW = 200
PENDING_MAX_LIMIT = 50
GPT_FRAME_COUNT = 3

def normalize_tags(tags: Iterable[str | None], limit: int = MAX_TAGS) -> list[str]:
    out: list[str] = []
    for t in tags:
        if t is None:
            continue
        name = t.strip().lower()
        if name and name not in out:
            out.append(name)
        if len(out) >= limit:
            break
    return out

def select_auto_tags(payload: DesktopMlTags) -> list[str]:
    """Up to three names from presentTags scoring >= 0.40, else mainTag then subTags."""
    present = [t for t in payload.present_tags if t.name and t.score is not None]
    present.sort(key=lambda t: t.score, reverse=True)
    chosen = normalize_tags((t.name for t in present if t.score >= MIN_SCORE_FOR_TAG), MAX_AUTO_TAGS)
    if chosen:
        return chosen
    fallback = []
    if payload.main_tag and payload.main_tag.name:
        fallback.append(payload.main_tag.name)
    fallback.extend(t.name for t in payload.sub_tags if t.name)
    return normalize_tags(fallback, MAX_AUTO_TAGS)

def has_no_tags(video: Video) -> bool:
    return all(not (getattr(video, col) or '').strip() for col in TAG_COLUMNS)

def set_tags(video: Video, tags: list[str]) -> None:
    for i, col in enumerate(TAG_COLUMNS):
        setattr(video, col, tags[i] if i < len(tags) else None)

# ---- sub-flow A: GPT image tagging -------------------------------------------------

async def save_gpt_image_tags(db: AsyncSession, video: Video, raw_tags: list[str]) -> list[str]:
    """Store the GPT_IMAGE record and fill tag1..tag5 when they are all empty.

    The record keeps the tags as the model returned them (trimmed, deduplicated); the
    tag columns use the normalised form. Returns the normalised tags.
    """
    cleaned: list[str] = []
    for t in raw_tags:
        t = (t or '').strip()
        if t and t not in cleaned:
            cleaned.append(t)
    await feature_store.save(db, video.video_no, SOURCE_GPT_IMAGE, GptImageTags(tags=cleaned))
    normalized = normalize_tags(cleaned)
    if normalized and has_no_tags(video):
        set_tags(video, normalized)
    return normalized

async def tag_with_gpt_image(video_no: int, store: MediaStore | None = None,
                             extractor: FrameExtractor | None = None) -> list[str]:
    store = store or get_media_store()
    extractor = extractor or FrameExtractor()
    async with SessionLocal() as db:
        video = await db.get(Video, video_no)
        file_path = video.file_path if video is not None else None
    if video is None:
        logger.warning("gpt tagging: video %s not found", video_no)
        return []
    # ffmpeg and the vision call run with no session open
    try:
        content = await asyncio.to_thread(store.read_bytes, file_path)
        suffix = os.path.splitext(file_path)[1] or '.mp4'
        frames = await asyncio.to_thread(extractor.extract, content, suffix)
    except Exception:
        logger.exception("gpt tagging: frame extraction failed video_no=%s", video_no)
        return []
    try:
        raw_tags = await tags_for_frames(frames[:GPT_FRAME_COUNT])
    except Exception:
        logger.exception("gpt tagging: vision call failed video_no=%s", video_no)
        return []
    finally:
        extractor.cleanup(frames)
    if not raw_tags:
        logger.info("gpt tagging: no tags for video_no=%s", video_no)
        return []
    async with SessionLocal() as db:
        video = await db.get(Video, video_no)
        if video is None:
            logger.warning("gpt tagging: video %s deleted before save", video_no)
            return []
        normalized = await save_gpt_image_tags(db, video, raw_tags)
        await db.commit()
    logger.info("gpt tagging video_no=%s tags=%s", video_no, normalized)
    return normalized

# ---- sub-flow B: desktop ML worker -------------------------------------------------

async def pending_desktop_targets(db: AsyncSession, limit: int | None = 5) -> list[DesktopTagTarget]:
    limit = max(1, min(PENDING_MAX_LIMIT, limit if limit is not None else 5))
    res = await db.execute(
        select(Video).where(public_filter())
        .order_by(Video.created_at.desc(), Video.video_no.desc())
        .limit(PENDING_WINDOW)
    )
    recent = list(res.scalars().all())
    if not recent:
        return []
    tagged = await db.execute(
        select(VideoFeature.video_no).where(
            VideoFeature.source == SOURCE_DESKTOP_ML,
            VideoFeature.video_no.in_([v.video_no for v in recent]),
        )
    )
    done = set(tagged.scalars().all())
    return [
        DesktopTagTarget(video_no=v.video_no, title=v.title, created_at=v.created_at, upload_date=v.upload_date)
        for v in recent if v.video_no not in done
    ][:limit]

async def save_desktop_auto_tags(db: AsyncSession, req: AutoTagRequest) -> list[str]:
    video = await db.get(Video, req.video_no)
    if video is None:
        raise NotFoundError(f"video not found: {req.video_no}")
    payload = DesktopMlTags(
        main_tag=req.main_tag, sub_tags=req.sub_tags, present_tags=req.present_tags,
        all_scores=req.all_scores, frame_count=req.frame_count,
    )
    try:
        await feature_store.save(db, video.video_no, SOURCE_DESKTOP_ML, payload)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("desktop auto tag save failed video_no=%s", req.video_no)
        raise DomainError("desktop auto tag save failed") from e
    tags = select_auto_tags(payload)
    set_tags(video, tags[:MAX_AUTO_TAGS])
    await db.commit()
    logger.info("desktop tags video_no=%s tags=%s", video.video_no, tags)
    return tags
