"""Prompt search: AI-predicted query tags scored against per-video tags."""
import logging, re
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from app.ai.prompt_tags import analyze_prompt
from app.core.errors import DomainError
from app.models.video import Video, VideoFeature
from app.schemas.finding import PromptFindingResponse, VideoMatch
from app.services import catalogue, feature_store

logger = logging.getLogger(__name__)

OVERLAP_WEIGHT = 3.0
TITLE_HIT_WEIGHT = 2.0
DESC_HIT_WEIGHT = 1.0
TITLE_PROMPT_BONUS = 2.0
DESC_PROMPT_BONUS = 1.0
HIGH_THRESHOLD = 0.66
MEDIUM_THRESHOLD = 0.33
MAX_FALLBACK_TOKENS = 30

_NON_WORD = re.compile(r"[^가-힣a-z0-9\s]")

def fallback_tags(title: str | None, description: str | None) -> list[str]:
    text = f"{title or ''} {description or ''}".lower()
    text = _NON_WORD.sub(' ', text)
    return [tok for tok in text.split() if len(tok) >= 2][:MAX_FALLBACK_TOKENS]

def resolve_video_tags(video: Video, features: list[VideoFeature]) -> list[str]:
    collected: list[str] = []
    for feature in features:
        for t in feature_store.parse_feature_tags(feature.tags_json):
            if t not in collected:
                collected.append(t)
    return collected or fallback_tags(video.title, video.description)

def raw_score(video_tags: list[str], query: set[str], title: str, description: str, prompt: str) -> float:
    title, description, prompt = title.lower(), description.lower(), prompt.lower()
    overlap = len({t.lower() for t in video_tags} & query)
    title_hits = sum(1 for q in query if q in title)
    desc_hits = sum(1 for q in query if q in description)
    score = overlap * OVERLAP_WEIGHT + title_hits * TITLE_HIT_WEIGHT + desc_hits * DESC_HIT_WEIGHT
    if prompt in title:
        score += TITLE_PROMPT_BONUS
    if prompt in description:
        score += DESC_PROMPT_BONUS
    return score

def normalize_score(score: float, query_size: int) -> float:
    return min(1.0, score / max(3.0 * max(1, query_size) + 5.0, 8.0))

def match_level(normalized: float) -> str:
    if normalized >= HIGH_THRESHOLD:
        return 'HIGH'
    if normalized >= MEDIUM_THRESHOLD:
        return 'MEDIUM'
    return 'LOW'

def _ts(dt: datetime | None) -> float:
    return dt.timestamp() if dt else 0.0

def sort_matches(matches: list[VideoMatch], sort: str | None) -> list[VideoMatch]:
    primary = {
        'views': lambda m: -m.views,
        'likes': lambda m: -m.likes,
        'dislikes': lambda m: -m.dislikes,
        'oldest': lambda m: _ts(m.created_at),
    }.get(sort or 'latest', lambda m: -_ts(m.created_at))
    return sorted(matches, key=lambda m: (primary(m), -m.match_score))

async def search(db: AsyncSession, prompt: str | None, sort: str | None = 'latest') -> PromptFindingResponse:
    prompt = (prompt or '').strip()
    if not prompt:
        raise DomainError("prompt must not be blank")
    analysis = await analyze_prompt(prompt)
    predicted = list(dict.fromkeys(t.lower() for t in analysis.tags))
    query = set(predicted)
    matches: list[VideoMatch] = []
    if query:
        candidates = await catalogue.find_recent_public(db)
        features = await feature_store.find_by_videos(db, [v.video_no for v in candidates])
        for v in candidates:
            tags = resolve_video_tags(v, features.get(v.video_no, []))
            score = raw_score(tags, query, v.title or '', v.description or '', prompt)
            if score <= 0:
                continue
            normalized = normalize_score(score, len(query))
            matches.append(VideoMatch(
                video_no=v.video_no, title=v.title, description=v.description,
                views=v.view_count or 0, likes=v.like_count or 0, dislikes=v.dislike_count or 0,
                created_at=v.created_at, duration_sec=0, tags=tags,
                match_score=normalized, match_level=match_level(normalized),
            ))
    else:
        logger.info("no predicted tags for prompt %r; returning no matches", prompt)
    logger.info("prompt search %r sort=%s -> %d match(es)", prompt, sort, len(matches))
    return PromptFindingResponse(
        original_prompt=prompt,
        intent_summary=analysis.intent_summary,
        predicted_tags=predicted,
        videos=sort_matches(matches, sort),
    )
