import logging
from contextlib import asynccontextmanager
from time import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi_limiter import FastAPILimiter
import redis.asyncio as redis
from app.api import admin as admin_api
from app.api import auth as auth_api
from app.api import features as features_api
from app.api import finding as finding_api
from app.api import videos as videos_api
from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.db.database import init_db
from app.services import jobs

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    try:
        await FastAPILimiter.init(redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True))
    except Exception:
        logger.warning("rate limiter disabled: redis unavailable at %s", settings.redis_url, exc_info=True)
        FastAPILimiter.redis = None
    logger.info("started env=%s tasks=%s storage=%s", settings.app_env, settings.task_backend, settings.video_storage_dir)
    yield
    # let in-process review/tagging jobs finish before the loop closes
    await jobs.drain()
    if FastAPILimiter.redis is not None:
        await FastAPILimiter.close()


app = FastAPI(title="AI Collector Video API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

# feature routes first: their paths sit under /api/videos
app.include_router(features_api.router)
app.include_router(videos_api.router)
app.include_router(finding_api.router)
app.include_router(auth_api.router)
app.include_router(admin_api.router)


@app.get("/")
def root():
    return {"message": "AI Collector Video API Running"}

@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def _log_requests(request: Request, call_next):
    start = time()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dur_ms = int((time() - start) * 1000)
        logger.info("%s %s -> %s %dms", request.method, request.url.path,
                    getattr(response, 'status_code', 'NA'), dur_ms)
