from pydantic import BaseModel, ConfigDict
from functools import lru_cache
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173,http://localhost:3000,"
    "https://aicollector.co.kr,https://www.aicollector.co.kr"
)

def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")

class Settings(BaseModel):
    # Real API keys must come from the environment (.env not committed).
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
    llm_timeout_seconds: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

    jwt_secret: str = os.getenv("JWT_SECRET", "change_me")
    jwt_alg: str = os.getenv("JWT_ALG", "HS256")
    jwt_expire_minutes: int = int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24)))

    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./app.db")
    app_env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    video_storage_dir: str = os.getenv("APP_VIDEO_STORAGE_DIR", "/data/videos")
    max_upload_size_mb: int = int(os.getenv("MAX_UPLOAD_MB", "1024"))  # 1GB
    ffmpeg_path: str = os.getenv("FFMPEG_PATH", "ffmpeg")

    review_timeout_seconds: float = float(os.getenv("REVIEW_TIMEOUT_SECONDS", "300"))
    gpt_image_tagging: bool = _flag("GPT_IMAGE_TAGGING", "true")

    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    task_backend: str = os.getenv("TASK_BACKEND", "local")  # local|celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    cors_origins: List[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()
    ]
    search_rate_limit: int = int(os.getenv("SEARCH_RATE_LIMIT", "10"))
    search_rate_window: int = int(os.getenv("SEARCH_RATE_WINDOW", "60"))

    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    mail_from: str = os.getenv("MAIL_FROM", "no-reply@aicollector.co.kr")
    mail_from_name: str = os.getenv("MAIL_FROM_NAME", "AI Collector")

    model_config = ConfigDict(arbitrary_types_allowed=True)

@lru_cache
def get_settings() -> Settings:
    return Settings()
