"""Explicit-content review of uploaded videos.

Fails closed: an unreadable file, a classifier error or a deadline overrun all hold the
video (``reviewStatus=H``, ``isBlocked=Y``).
"""
import asyncio, logging
from functools import lru_cache
from typing import Protocol
from app.core.config import get_settings
from app.db.database import SessionLocal
from app.models.video import (
    Video, REVIEW_APPROVED, REVIEW_HELD, BLOCKED, NOT_BLOCKED,
)
from app.services.jobs import dispatch_after_commit, JOB_GPT_IMAGE
from app.services.storage import MediaStore, get_media_store

logger = logging.getLogger(__name__)

HARMFUL_LIKELIHOODS = {'LIKELY', 'VERY_LIKELY'}

class ExplicitContentClassifier(Protocol):
    def pornography_likelihoods(self, content: bytes, timeout: float) -> list[str]:
        """Frame-level likelihood names (``VERY_UNLIKELY`` .. ``VERY_LIKELY``)."""
        ...

class VideoIntelligenceClassifier:
    """Google Cloud Video Intelligence EXPLICIT_CONTENT_DETECTION."""

    def __init__(self):
        self._client = None

    def _get_client(self):
        if self._client is None:
            from google.cloud import videointelligence_v1 as videointelligence
            self._client = videointelligence.VideoIntelligenceServiceClient()
        return self._client

    def pornography_likelihoods(self, content: bytes, timeout: float) -> list[str]:
        from google.cloud import videointelligence_v1 as videointelligence
        client = self._get_client()
        operation = client.annotate_video(request={
            "features": [videointelligence.Feature.EXPLICIT_CONTENT_DETECTION],
            "input_content": content,
        })
        response = operation.result(timeout=timeout)
        names = []
        for result in response.annotation_results:
            for frame in result.explicit_annotation.frames:
                lk = frame.pornography_likelihood
                names.append(getattr(lk, 'name', None) or videointelligence.Likelihood(lk).name)
        return names

@lru_cache
def get_classifier() -> ExplicitContentClassifier:
    return VideoIntelligenceClassifier()

async def is_harmful(file_path: str | None, classifier: ExplicitContentClassifier | None = None,
                     store: MediaStore | None = None) -> bool:
    settings = get_settings()
    store = store or get_media_store()
    classifier = classifier or get_classifier()
    if not store.exists(file_path):
        logger.warning("review: file missing %s", file_path)
        return True
    try:
        content = await asyncio.to_thread(store.read_bytes, file_path)
    except OSError:
        logger.exception("review: cannot read %s", file_path)
        return True
    timeout = settings.review_timeout_seconds
    try:
        likelihoods = await asyncio.wait_for(
            asyncio.to_thread(classifier.pornography_likelihoods, content, timeout),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("review: classifier exceeded %.0fs deadline", timeout)
        return True
    except Exception:
        logger.exception("review: classifier call failed")
        return True
    return any(str(lk).upper() in HARMFUL_LIKELIHOODS for lk in likelihoods)

async def review_video(video_no: int, classifier: ExplicitContentClassifier | None = None,
                       store: MediaStore | None = None) -> str | None:
    """Decide approval for one video and persist the final state in a single write.

    No session is held while the classifier runs. Returns the resulting
    ``reviewStatus`` or None when the video no longer exists.
    """
    async with SessionLocal() as db:
        video = await db.get(Video, video_no)
        file_path = video.file_path if video is not None else None
    if video is None:
        logger.warning("review: video %s not found", video_no)
        return None

    harmful = await is_harmful(file_path, classifier, store)

    async with SessionLocal() as db:
        video = await db.get(Video, video_no)
        if video is None:
            logger.warning("review: video %s deleted during review", video_no)
            return None
        if harmful:
            video.review_status, video.is_blocked = REVIEW_HELD, BLOCKED
        else:
            video.review_status, video.is_blocked = REVIEW_APPROVED, NOT_BLOCKED
            if get_settings().gpt_image_tagging:
                dispatch_after_commit(db, JOB_GPT_IMAGE, video_no)
        await db.commit()
        logger.info("review video_no=%s -> %s", video_no, 'held' if harmful else 'approved')
        return video.review_status
