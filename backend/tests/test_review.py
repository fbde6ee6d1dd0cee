import os, time, pytest
from app.core.config import get_settings
from app.services import jobs, review
from app.services.review import review_video
from conftest import FakeClassifier

pytestmark = pytest.mark.anyio

async def _state(db, video):
    await db.refresh(video)
    return video.review_status, video.is_blocked

async def test_safe_video_is_approved(db, make_user, make_video, classifier):
    video = await make_video(await make_user(), review_status='P')
    assert await review_video(video.video_no) == 'A'
    assert await _state(db, video) == ('A', 'N')
    assert classifier.calls == 1

async def test_missing_file_is_held_without_raising(db, make_user, make_video, classifier):
    video = await make_video(await make_user(), review_status='P', with_file=False)
    assert not os.path.exists(video.file_path)
    await review_video(video.video_no)
    assert await _state(db, video) == ('H', 'Y')
    assert classifier.calls == 0

async def test_likely_pornography_is_held_and_stays_held(db, make_user, make_video):
    video = await make_video(await make_user(), review_status='P')
    harmful = FakeClassifier(likelihoods=['VERY_UNLIKELY', 'LIKELY'])
    await review_video(video.video_no, classifier=harmful)
    await review_video(video.video_no, classifier=harmful)
    assert await _state(db, video) == ('H', 'Y')

async def test_classifier_error_fails_closed(db, make_user, make_video):
    video = await make_video(await make_user(), review_status='P')
    await review_video(video.video_no, classifier=FakeClassifier(error=RuntimeError('quota exceeded')))
    assert await _state(db, video) == ('H', 'Y')

async def test_classifier_deadline_fails_closed(db, make_user, make_video, monkeypatch):
    monkeypatch.setattr(get_settings(), 'review_timeout_seconds', 0.05)

    class SlowClassifier:
        def pornography_likelihoods(self, content, timeout):
            time.sleep(0.3)
            return ['VERY_UNLIKELY']

    video = await make_video(await make_user(), review_status='P')
    await review_video(video.video_no, classifier=SlowClassifier())
    assert await _state(db, video) == ('H', 'Y')

async def test_approval_schedules_image_tagging_after_commit(db, make_user, make_video, monkeypatch):
    monkeypatch.setattr(get_settings(), 'gpt_image_tagging', True)
    dispatched = []
    monkeypatch.setattr(jobs, 'dispatch', lambda job, video_no: dispatched.append((job, video_no)))
    video = await make_video(await make_user(), review_status='P')
    await review_video(video.video_no)
    assert dispatched == [(jobs.JOB_GPT_IMAGE, video.video_no)]

async def test_unknown_video_is_ignored(db_schema):
    assert await review_video(424242) is None

async def test_no_connection_held_while_classifying(make_user, make_video, open_connections):
    video = await make_video(await make_user(), review_status='P')
    seen = []

    class RecordingClassifier(FakeClassifier):
        def pornography_likelihoods(self, content, timeout):
            seen.append(open_connections['out'])
            return super().pornography_likelihoods(content, timeout)

    assert await review_video(video.video_no, classifier=RecordingClassifier()) == 'A'
    assert seen == [0]

async def test_video_deleted_during_review_is_not_recreated(db, make_user, make_video, monkeypatch):
    from sqlalchemy import delete, select
    from app.db.database import SessionLocal
    from app.models.video import Video
    video = await make_video(await make_user(), review_status='P')

    async def delete_then_judge(file_path, classifier=None, store=None):
        async with SessionLocal() as other:
            await other.execute(delete(Video).where(Video.video_no == video.video_no))
            await other.commit()
        return False

    monkeypatch.setattr(review, 'is_harmful', delete_then_judge)
    assert await review_video(video.video_no) is None
    assert (await db.execute(select(Video).where(Video.video_no == video.video_no))).scalar_one_or_none() is None
