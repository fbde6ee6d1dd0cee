"""Background job dispatch.

Jobs requested inside a transaction are held on the session and only handed to the
backend once that transaction commits; a rollback discards them. The ``local`` backend
runs jobs as asyncio tasks on the serving loop, ``celery`` sends them to the worker.
"""
import asyncio, logging
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session
from app.core.config import get_settings

logger = logging.getLogger(__name__)

JOB_REVIEW = 'review.video'
JOB_GPT_IMAGE = 'tag.gpt_image'

_PENDING_KEY = 'post_commit_jobs'
_local_tasks: set[asyncio.Task] = set()

def _runner(job: str):
    from app.services.review import review_video
    from app.services.tagging import tag_with_gpt_image
    runners = {JOB_REVIEW: review_video, JOB_GPT_IMAGE: tag_with_gpt_image}
    if job not in runners:
        raise ValueError(f"unknown job {job}")
    return runners[job]

async def _run(job: str, video_no: int):
    try:
        await _runner(job)(video_no)
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("job %s failed video_no=%s", job, video_no)

def _spawn_local(job: str, video_no: int) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("no running event loop; job %s dropped video_no=%s", job, video_no)
        return
    task = loop.create_task(_run(job, video_no), name=f"{job}:{video_no}")
    _local_tasks.add(task)
    task.add_done_callback(_local_tasks.discard)

def dispatch(job: str, video_no: int) -> None:
    if get_settings().task_backend == 'celery':
        try:
            from app.services.tasks import CELERY_TASKS
            CELERY_TASKS[job].delay(video_no)
            logger.info("queued %s on celery video_no=%s", job, video_no)
            return
        except Exception:
            logger.exception("celery dispatch failed; running %s in-process", job)
    _spawn_local(job, video_no)

def dispatch_after_commit(db: AsyncSession | Session, job: str, video_no: int) -> None:
    session = db.sync_session if isinstance(db, AsyncSession) else db
    if not session.in_transaction():
        dispatch(job, video_no)
        return
    session.info.setdefault(_PENDING_KEY, []).append((job, video_no))

@event.listens_for(Session, 'after_commit')
def _dispatch_pending(session):
    for job, video_no in session.info.pop(_PENDING_KEY, []):
        try:
            dispatch(job, video_no)
        except Exception:
            logger.exception("post-commit dispatch of %s failed video_no=%s", job, video_no)

@event.listens_for(Session, 'after_rollback')
def _discard_pending(session):
    dropped = session.info.pop(_PENDING_KEY, [])
    if dropped:
        logger.info("rollback discarded %d pending job(s)", len(dropped))

def pending_local_jobs() -> int:
    return len(_local_tasks)

async def drain() -> None:
    """Wait for in-process jobs, including jobs those jobs schedule."""
    while _local_tasks:
        await asyncio.gather(*list(_local_tasks), return_exceptions=True)
