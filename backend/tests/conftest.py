import os, tempfile, uuid, pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event

_TMP = tempfile.mkdtemp(prefix='aicollector-test-')
os.environ.setdefault('DATABASE_URL', f"sqlite+aiosqlite:///{_TMP}/test.db")
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('APP_VIDEO_STORAGE_DIR', os.path.join(_TMP, 'videos'))
os.environ.setdefault('GPT_IMAGE_TAGGING', 'false')
os.environ.setdefault('TASK_BACKEND', 'local')
os.environ.setdefault('SEARCH_RATE_LIMIT', '1000')
os.environ.setdefault('JWT_SECRET', 'test-secret')

from app.main import app  # after env setup
from app.core.config import get_settings
from app.core.security import create_access_token, hash_password, ROLE_USER, ROLE_ADMIN
from app.db.database import Base, engine, SessionLocal
from app.models.user import User, Admin
from app.models.video import Video
from app.services import jobs, review
from app.services.tagging import set_tags

class FakeClassifier:
    def __init__(self, likelihoods=('VERY_UNLIKELY', 'UNLIKELY'), error=None):
        self.likelihoods = list(likelihoods)
        self.error = error
        self.calls = 0

    def pornography_likelihoods(self, content, timeout):
        self.calls += 1
        if self.error:
            raise self.error
        return self.likelihoods

@pytest.fixture(scope='session')
def anyio_backend():
    return 'asyncio'

@pytest.fixture(autouse=True)
def classifier(monkeypatch):
    fake = FakeClassifier()
    monkeypatch.setattr(review, 'get_classifier', lambda: fake)
    return fake

@pytest.fixture
async def db_schema(anyio_backend):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await jobs.drain()

@pytest.fixture
async def db(db_schema):
    async with SessionLocal() as session:
        yield session

@pytest.fixture
async def client(db_schema):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

def bearer(sub: str, role: str = ROLE_USER) -> dict:
    return {'Authorization': f"Bearer {create_access_token(sub, roles=[role])}"}

@pytest.fixture
def make_user(db):
    async def _make(user_id='u1', nickname=None, password='pw1234'):
        user = User(user_id=user_id, password=hash_password(password), nickname=nickname or user_id,
                    email=f"{user_id}@example.com", token_count=5)
        db.add(user)
        await db.commit()
        return user
    return _make

@pytest.fixture
def make_admin(db):
    async def _make(admin_id='root', password='adminpw'):
        admin = Admin(admin_id=admin_id, password=hash_password(password), admin_name='Root')
        db.add(admin)
        await db.commit()
        return admin
    return _make

@pytest.fixture
def make_video(db):
    async def _make(user, title='sample clip', description=None, review_status='A', is_blocked='N',
                    tags=(), with_file=True, **extra):
        user_dir = os.path.join(get_settings().video_storage_dir, str(user.user_no))
        os.makedirs(user_dir, exist_ok=True)
        path = os.path.join(user_dir, f"{uuid.uuid4()}.mp4")
        if with_file:
            with open(path, 'wb') as f:
                f.write(b'\x00\x00\x00\x18ftypmp42fake')
        video = Video(user_no=user.user_no, title=title, description=description, file_name='clip.mp4',
                      content_type='video/mp4', file_size=16, file_path=path,
                      review_status=review_status, is_blocked=is_blocked, **extra)
        set_tags(video, list(tags))
        db.add(video)
        await db.commit()
        return video
    return _make

@pytest.fixture
def open_connections():
    """Live count of pooled connections checked out of the engine."""
    state = {'out': 0}
    def _checkout(*args):
        state['out'] += 1
    def _checkin(*args):
        state['out'] -= 1
    event.listen(engine.sync_engine, 'checkout', _checkout)
    event.listen(engine.sync_engine, 'checkin', _checkin)
    yield state
    event.remove(engine.sync_engine, 'checkout', _checkout)
    event.remove(engine.sync_engine, 'checkin', _checkin)

@pytest.fixture
def auth():
    return bearer
