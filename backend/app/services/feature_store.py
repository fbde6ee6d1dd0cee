"""Per-(video, source) feature records. At most one row exists for each pair."""
import json
import logging
from typing import Iterable
from pydantic import BaseModel
from sqlalchemy import select, delete, exists
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.video import VideoFeature

logger = logging.getLogger(__name__)

async def find_by_video(db: AsyncSession, video_no: int) -> list[VideoFeature]:
    res = await db.execute(
        select(VideoFeature).where(VideoFeature.video_no == video_no).order_by(VideoFeature.feature_no)
    )
    return list(res.scalars().all())

async def find_by_videos(db: AsyncSession, video_nos: Iterable[int]) -> dict[int, list[VideoFeature]]:
    ids = list(video_nos)
    grouped: dict[int, list[VideoFeature]] = {vno: [] for vno in ids}
    if not ids:
        return grouped
    res = await db.execute(
        select(VideoFeature).where(VideoFeature.video_no.in_(ids)).order_by(VideoFeature.feature_no)
    )
    for feature in res.scalars().all():
        grouped[feature.video_no].append(feature)
    return grouped

async def exists_by_video_and_source(db: AsyncSession, video_no: int, source: str) -> bool:
    res = await db.execute(
        select(exists().where(VideoFeature.video_no == video_no, VideoFeature.source == source))
    )
    return bool(res.scalar())

async def delete_by_video(db: AsyncSession, video_no: int) -> None:
    await db.execute(delete(VideoFeature).where(VideoFeature.video_no == video_no))

async def delete_by_video_and_source(db: AsyncSession, video_no: int, source: str) -> None:
    await db.execute(
        delete(VideoFeature).where(VideoFeature.video_no == video_no, VideoFeature.source == source)
    )

async def save(db: AsyncSession, video_no: int, source: str, payload: BaseModel | dict,
               frame_time: float | None = None) -> VideoFeature:
    """Replace the record for ``(video_no, source)``. Runs inside the caller's transaction."""
    if isinstance(payload, BaseModel):
        tags_json = payload.model_dump_json(by_alias=True)
    else:
        tags_json = json.dumps(payload, ensure_ascii=False)
    await delete_by_video_and_source(db, video_no, source)
    feature = VideoFeature(video_no=video_no, source=source, tags_json=tags_json, frame_time=frame_time)
    db.add(feature)
    await db.flush()
    return feature

def parse_feature_tags(tags_json: str | None) -> list[str]:
    """Read ``tags`` from a feature document: a list of strings or one comma/newline separated string."""
    if not tags_json:
        return []
    try:
        doc = json.loads(tags_json)
    except ValueError:
        logger.warning("unparseable tagsJson: %.80s", tags_json)
        return []
    if not isinstance(doc, dict):
        return []
    raw = doc.get('tags')
    if isinstance(raw, list):
        items = [str(t) for t in raw if t is not None]
    elif isinstance(raw, str):
        items = raw.replace('\n', ',').split(',')
    else:
        return []
    return [t.strip() for t in items if t and t.strip()]
