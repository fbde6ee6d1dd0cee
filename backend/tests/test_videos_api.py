import io, os, pytest
from sqlalchemy import select, func
from app.core.config import get_settings
from app.models.video import Video, VideoFeature, VideoReaction, SOURCE_GPT_IMAGE
from app.schemas.features import GptImageTags
from app.services import feature_store, jobs

pytestmark = pytest.mark.anyio

async def test_upload_stores_file_and_review_approves(client, db, make_user, auth):
    user = await make_user()
    files = {'file': ('cat.mp4', io.BytesIO(b'\x00' * 2048), 'video/mp4')}
    data = {'title': ' 고양이 ', 'description': 'my cat', 'tags': ['a', ' ', 'b', 'c', 'd', 'e', 'f']}
    r = await client.post('/api/videos', files=files, data=data, headers=auth('u1'))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body['reviewStatus'] == 'P' and body['isBlocked'] == 'N'
    assert body['title'] == '고양이'
    assert [body[f"tag{i}"] for i in range(1, 6)] == ['a', 'b', 'c', 'd', 'e']

    video = await db.get(Video, body['videoNo'])
    assert os.path.dirname(video.file_path) == os.path.join(get_settings().video_storage_dir, str(user.user_no))
    assert video.file_path.endswith('.mp4') and os.path.getsize(video.file_path) == 2048

    await jobs.drain()
    await db.refresh(video)
    assert (video.review_status, video.is_blocked) == ('A', 'N')

async def test_upload_requires_token_and_title(client, make_user, auth):
    files = {'file': ('cat.mp4', io.BytesIO(b'data'), 'video/mp4')}
    assert (await client.post('/api/videos', files=files, data={'title': 't'})).status_code == 401
    await make_user()
    files = {'file': ('cat.mp4', io.BytesIO(b'data'), 'video/mp4')}
    r = await client.post('/api/videos', files=files, data={'title': '  '}, headers=auth('u1'))
    assert r.status_code == 400

async def test_stream_serves_file_then_404_when_missing(client, make_user, make_video):
    video = await make_video(await make_user())
    r = await client.get(f"/api/videos/{video.video_no}/stream")
    assert r.status_code == 200
    assert r.headers['content-type'].startswith('video/mp4')
    assert r.headers['content-disposition'] == "inline; filename=\"clip.mp4\"; filename*=UTF-8''clip.mp4"
    assert r.content.endswith(b'fake')
    os.remove(video.file_path)
    assert (await client.get(f"/api/videos/{video.video_no}/stream")).status_code == 404

async def test_public_listing_filters_and_annotates(client, db, make_user, make_video, auth):
    user = await make_user()
    cat = await make_video(user, title='Funny CAT', tags=['cat', 'pet'])
    dog = await make_video(user, title='dog walk', tags=['dog'])
    await make_video(user, title='pending cat', review_status='P')
    await make_video(user, title='held cat', review_status='H', is_blocked='Y')
    await client.patch(f"/api/videos/{cat.video_no}/reaction", params={'action': 'LIKE'}, headers=auth('u1'))

    r = await client.get('/api/videos/public')
    page = r.json()
    assert [v['videoNo'] for v in page['content']] == [dog.video_no, cat.video_no]
    assert page['totalElements'] == 2 and page['size'] == 36 and page['totalPages'] == 1
    assert all(v['myReaction'] is None for v in page['content'])

    r = await client.get('/api/videos/public', params={'keyword': 'cat'}, headers=auth('u1'))
    content = r.json()['content']
    assert [v['videoNo'] for v in content] == [cat.video_no]
    assert content[0]['myReaction'] == 'LIKE' and content[0]['likeCount'] == 1

    r = await client.get('/api/videos/public', params={'tags': 'dog, bird'})
    assert [v['videoNo'] for v in r.json()['content']] == [dog.video_no]
    r = await client.get('/api/videos/public', params={'page': 1, 'size': 1})
    assert [v['videoNo'] for v in r.json()['content']] == [cat.video_no]

async def test_empty_catalogue(client):
    r = await client.get('/api/videos/public')
    assert r.json()['content'] == [] and r.json()['totalElements'] == 0
    summary = (await client.get('/api/videos/home-summary')).json()
    assert summary == {'totalCount': 0, 'topLiked': None, 'topViewed': None, 'topDisliked': None}

async def test_home_summary_and_view_count(client, make_user, make_video):
    user = await make_user(nickname='냥집사')
    popular = await make_video(user, title='popular', view_count=10, tags=['x'])
    await make_video(user, title='quiet', view_count=1, dislike_count=3)
    r = await client.post(f"/api/videos/{popular.video_no}/view")
    assert r.json() == {'viewCount': 11}
    summary = (await client.get('/api/videos/home-summary')).json()
    assert summary['totalCount'] == 2
    assert summary['topViewed']['videoNo'] == popular.video_no
    assert summary['topViewed']['uploaderNickname'] == '냥집사'
    assert summary['topViewed']['tags'] == ['x']
    assert summary['topDisliked']['title'] == 'quiet'

async def test_owner_checks_on_update_and_delete(client, db, make_user, make_video, auth):
    owner = await make_user('owner')
    await make_user('other')
    video = await make_video(owner)
    r = await client.patch(f"/api/videos/{video.video_no}", json={'title': 'hack'}, headers=auth('other'))
    assert r.status_code == 403 and r.json()['status'] == 403
    assert (await client.delete(f"/api/videos/{video.video_no}", headers=auth('other'))).status_code == 403

    r = await client.patch(f"/api/videos/{video.video_no}", json={'title': ' new title ', 'tags': ['q']}, headers=auth('owner'))
    assert r.json()['title'] == 'new title' and r.json()['tag1'] == 'q'

async def test_owner_delete_cascades_and_removes_file(client, db, make_user, make_video, auth):
    owner = await make_user('owner')
    video = await make_video(owner)
    await feature_store.save(db, video.video_no, SOURCE_GPT_IMAGE, GptImageTags(tags=['t']))
    await db.commit()
    await client.patch(f"/api/videos/{video.video_no}/reaction", params={'action': 'DISLIKE'}, headers=auth('owner'))

    r = await client.delete(f"/api/videos/{video.video_no}", headers=auth('owner'))
    assert r.status_code == 204
    assert not os.path.exists(video.file_path)
    for model in (VideoFeature, VideoReaction):
        count = (await db.execute(select(func.count()).select_from(model).where(model.video_no == video.video_no))).scalar_one()
        assert count == 0
    db.expunge_all()
    assert await db.get(Video, video.video_no) is None

async def test_my_videos_and_reaction_errors(client, make_user, make_video, auth):
    user = await make_user()
    first = await make_video(user, title='first', review_status='P')
    second = await make_video(user, title='second', review_status='H', is_blocked='Y')
    r = await client.get('/api/videos/my', headers=auth('u1'))
    assert [v['videoNo'] for v in r.json()] == [second.video_no, first.video_no]
    r = await client.patch(f"/api/videos/{first.video_no}/reaction", params={'action': 'MEH'}, headers=auth('u1'))
    assert r.status_code == 400
    r = await client.patch('/api/videos/9999/reaction', params={'action': 'LIKE'}, headers=auth('u1'))
    assert r.status_code == 400

async def _video_rows(db):
    return (await db.execute(select(func.count()).select_from(Video))).scalar_one()

async def test_failed_insert_leaves_no_row_and_no_file(db, make_user, monkeypatch, tmp_path):
    from fastapi import UploadFile
    from app.services import catalogue, video_service
    from app.services.storage import MediaStore
    user_no = (await make_user()).user_no
    dispatched = []
    monkeypatch.setattr(jobs, 'dispatch', lambda job, video_no: dispatched.append(job))

    async def broken_create(session, video):
        session.add(video)
        await session.flush()
        raise RuntimeError("insert failed")
    monkeypatch.setattr(catalogue, 'create', broken_create)

    upload = UploadFile(file=io.BytesIO(b'\x00' * 64), filename='cat.mp4')
    with pytest.raises(RuntimeError):
        await video_service.upload(db, 'u1', 'cat', None, [], upload, store=MediaStore(str(tmp_path)))
    assert await _video_rows(db) == 0
    assert os.listdir(tmp_path / str(user_no)) == []
    assert dispatched == []

async def test_upload_over_size_limit_is_rejected(db, make_user, monkeypatch, tmp_path):
    from fastapi import UploadFile
    from app.core.errors import DomainError
    from app.services import video_service
    from app.services.storage import MediaStore
    user = await make_user()
    monkeypatch.setattr(get_settings(), 'max_upload_size_mb', 0)

    upload = UploadFile(file=io.BytesIO(b'\x00' * 64), filename='big.mp4')
    with pytest.raises(DomainError, match='upload limit'):
        await video_service.upload(db, 'u1', 'big', None, [], upload, store=MediaStore(str(tmp_path)))
    assert await _video_rows(db) == 0
    assert os.listdir(tmp_path / str(user.user_no)) == []

async def test_upload_over_size_limit_returns_400(client, make_user, auth, monkeypatch):
    await make_user()
    monkeypatch.setattr(get_settings(), 'max_upload_size_mb', 0)
    files = {'file': ('big.mp4', io.BytesIO(b'\x00' * 64), 'video/mp4')}
    r = await client.post('/api/videos', files=files, data={'title': 'big'}, headers=auth('u1'))
    assert r.status_code == 400
    assert r.json()['status'] == 400

async def test_stream_encodes_non_ascii_file_name(client, db, make_user, make_video):
    video = await make_video(await make_user())
    video.file_name = '고양이 영상.mp4'
    await db.commit()
    r = await client.get(f"/api/videos/{video.video_no}/stream")
    assert r.status_code == 200
    disposition = r.headers['content-disposition']
    assert "filename*=UTF-8''%EA%B3%A0%EC%96%91%EC%9D%B4%20%EC%98%81%EC%83%81.mp4" in disposition
    assert disposition.isascii()
