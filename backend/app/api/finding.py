import logging
from fastapi import APIRouter, Depends, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.deps import get_current_user
from app.core.config import get_settings
from app.core.security import decode_token
from app.db.database import get_db
from app.schemas.finding import PromptFindingRequest, PromptFindingResponse
from app.services import finding

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/finding", tags=["finding"])
settings = get_settings()

async def caller_identity(request: Request) -> str:
    """Rate-limit key: the token's userId, else the client host."""
    auth = request.headers.get('authorization') or ''
    scheme, _, token = auth.partition(' ')
    if scheme.lower() == 'bearer' and token:
        payload = decode_token(token.strip())
        if payload and payload.get('sub'):
            return f"user:{payload['sub']}"
    host = request.client.host if request.client else 'unknown'
    return f"host:{host}"

search_limiter = RateLimiter(
    times=settings.search_rate_limit,
    seconds=settings.search_rate_window,
    identifier=caller_identity,
)

async def limit_search(request: Request, response: Response):
    if FastAPILimiter.redis is None:
        # limiter not initialised (redis unreachable at startup)
        logger.debug("search rate limit skipped: limiter not initialised")
        return
    await search_limiter(request, response)

@router.post('/search', response_model=PromptFindingResponse, dependencies=[Depends(limit_search)])
async def search(data: PromptFindingRequest, user_id: str = Depends(get_current_user),
                 db: AsyncSession = Depends(get_db)):
    return await finding.search(db, data.prompt, data.sort)
