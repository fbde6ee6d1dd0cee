"""Upload orchestration and the member-facing video operations."""
import asyncio, logging, math
from dataclasses import dataclass
from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import get_settings
from app.core.errors import DomainError, ForbiddenError
from app.models.user import User
from app.models.video import Video, REVIEW_PENDING, NOT_BLOCKED
from app.schemas.video import VideoSummary, VideoPage, HomeSummary, SimpleVideo, VideoUpdateRequest
from app.services import catalogue, feature_store, reactions, user_service
from app.services.jobs import dispatch_after_commit, JOB_REVIEW
from app.services.storage import MediaStore, get_media_store
from app.services.tagging import set_tags

logger = logging.getLogger(__name__)

MAX_UPLOAD_TAGS = 5
DEFAULT_PAGE_SIZE = 36
MAX_PAGE_SIZE = 100

@dataclass
class StreamTarget:
    path: str
    file_name: str
    content_type: str
    size: int

def to_summary(video: Video, my_reaction: str | None = None) -> VideoSummary:
    summary = VideoSummary.model_validate(video)
    summary.my_reaction = my_reaction
    return summary

def _clean_upload_tags(tags: list[str] | None) -> list[str]:
    out = []
    for t in tags or []:
        t = (t or '').strip()
        if t:
            out.append(t)
    return out[:MAX_UPLOAD_TAGS]

async def upload(db: AsyncSession, user_id: str, title: str, description: str | None,
                 tags: list[str] | None, file: UploadFile, store: MediaStore | None = None) -> VideoSummary:
    if not title or not title.strip():
        raise DomainError("title is required")
    if file is None or not file.filename:
        raise DomainError("file is required")
    store = store or get_media_store()
    user = await user_service.get_by_user_id(db, user_id)

    stored = await asyncio.to_thread(store.put, user.user_no, file.file, file.filename)
    max_bytes = get_settings().max_upload_size_mb * 1024 * 1024
    if stored.size == 0 or stored.size > max_bytes:
        store.delete(stored.path)
        raise DomainError("file is empty" if stored.size == 0 else "file exceeds upload limit")

    video = Video(
        user_no=user.user_no,
        title=title.strip(),
        description=description,
        file_name=file.filename,
        content_type=file.content_type or 'application/octet-stream',
        file_size=stored.size,
        file_path=stored.path,
        view_count=0, like_count=0, dislike_count=0,
        is_blocked=NOT_BLOCKED,
        review_status=REVIEW_PENDING,
    )
    set_tags(video, _clean_upload_tags(tags))
    try:
        await catalogue.create(db, video)
        dispatch_after_commit(db, JOB_REVIEW, video.video_no)
        await db.commit()
    except Exception:
        await db.rollback()
        store.delete(stored.path)
        raise
    logger.info("uploaded video_no=%s user_no=%s size=%d", video.video_no, user.user_no, stored.size)
    return to_summary(video)

async def my_videos(db: AsyncSession, user_id: str) -> list[VideoSummary]:
    user = await user_service.get_by_user_id(db, user_id)
    return [to_summary(v) for v in await catalogue.find_by_user(db, user.user_no)]

def parse_tag_param(tags: str | None) -> list[str]:
    if not tags or not tags.strip():
        return []
    return [t.strip() for t in tags.split(',') if t.strip()]

async def public_videos(db: AsyncSession, keyword: str | None, tags: list[str], page: int, size: int,
                        user_id: str | None = None) -> VideoPage:
    page = max(0, page)
    size = max(1, min(MAX_PAGE_SIZE, size))
    videos, total = await catalogue.search_public(db, keyword, tags, page, size)
    mine: dict[int, str] = {}
    if user_id and videos:
        user = await user_service.get_by_user_id(db, user_id)
        mine = await reactions.reactions_for_user(db, user.user_no, [v.video_no for v in videos])
    return VideoPage(
        content=[to_summary(v, mine.get(v.video_no)) for v in videos],
        page=page,
        size=size,
        total_elements=total,
        total_pages=math.ceil(total / size) if total else 0,
    )

async def stream_target(db: AsyncSession, video_no: int, store: MediaStore | None = None) -> StreamTarget | None:
    """Stored file metadata, or None when the file has gone missing."""
    store = store or get_media_store()
    video = await catalogue.get_or_raise(db, video_no)
    try:
        fh, size = store.open(video.file_path)
    except OSError:
        logger.warning("stream: file missing video_no=%s path=%s", video_no, video.file_path)
        return None
    fh.close()
    return StreamTarget(path=video.file_path, file_name=video.file_name,
                        content_type=video.content_type, size=size)

async def _owned_video(db: AsyncSession, user_id: str, video_no: int, verb: str) -> Video:
    user = await user_service.get_by_user_id(db, user_id)
    video = await catalogue.get_or_raise(db, video_no)
    if video.user_no != user.user_no:
        raise ForbiddenError(f"only the uploader can {verb} this video")
    return video

async def delete_my_video(db: AsyncSession, user_id: str, video_no: int, store: MediaStore | None = None) -> None:
    store = store or get_media_store()
    video = await _owned_video(db, user_id, video_no, 'delete')
    path = video.file_path
    await feature_store.delete_by_video(db, video_no)
    await reactions.delete_by_video(db, video_no)
    await db.delete(video)
    await db.commit()
    store.delete(path)
    logger.info("deleted video_no=%s by %s", video_no, user_id)

async def update_my_video(db: AsyncSession, user_id: str, video_no: int, req: VideoUpdateRequest) -> VideoSummary:
    video = await _owned_video(db, user_id, video_no, 'edit')
    if req.title is not None and req.title.strip():
        video.title = req.title.strip()
    if req.description is not None:
        video.description = req.description
    if req.tags is not None:
        set_tags(video, _clean_upload_tags(req.tags))
    await db.commit()
    return to_summary(video)

async def toggle_reaction(db: AsyncSession, user_id: str, video_no: int, action: str) -> reactions.ReactionResult:
    user = await user_service.get_by_user_id(db, user_id)
    return await reactions.toggle(db, user.user_no, video_no, action)

async def increase_view_count(db: AsyncSession, video_no: int) -> int:
    count = await catalogue.increase_view_count(db, video_no)
    await db.commit()
    return count

async def _simple(db: AsyncSession, video: Video | None) -> SimpleVideo | None:
    if video is None:
        return None
    nickname = (await db.execute(select(User.nickname).where(User.user_no == video.user_no))).scalar_one_or_none()
    return SimpleVideo(
        video_no=video.video_no,
        title=video.title,
        description=video.description,
        video_url=f"/api/videos/{video.video_no}/stream",
        like_count=video.like_count or 0,
        dislike_count=video.dislike_count or 0,
        view_count=video.view_count or 0,
        uploader_nickname=nickname,
        created_at=video.created_at,
        tags=video.tags,
    )

async def home_summary(db: AsyncSession) -> HomeSummary:
    return HomeSummary(
        total_count=await catalogue.count_public(db),
        top_liked=await _simple(db, await catalogue.top_public_by(db, Video.like_count)),
        top_viewed=await _simple(db, await catalogue.top_public_by(db, Video.view_count)),
        top_disliked=await _simple(db, await catalogue.top_public_by(db, Video.dislike_count)),
    )
