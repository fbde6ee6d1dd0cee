import asyncio
from app.services.celery_app import celery_app
from app.services.jobs import JOB_REVIEW, JOB_GPT_IMAGE
from app.db.database import engine

async def _run_and_dispose(coro):
    try:
        await coro
    finally:
        # pooled connections are bound to this asyncio.run loop
        await engine.dispose()

@celery_app.task(name=JOB_REVIEW)
def review_video_task(video_no: int):
    """Explicit-content review of an uploaded video."""
    from app.services.review import review_video
    asyncio.run(_run_and_dispose(review_video(video_no)))

@celery_app.task(name=JOB_GPT_IMAGE)
def gpt_image_tag_task(video_no: int):
    from app.services.tagging import tag_with_gpt_image
    asyncio.run(_run_and_dispose(tag_with_gpt_image(video_no)))

CELERY_TASKS = {
    JOB_REVIEW: review_video_task,
    JOB_GPT_IMAGE: gpt_image_tag_task,
}
