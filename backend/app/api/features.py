from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.database import get_db
from app.schemas.features import AutoTagRequest, DesktopTagTarget
from app.services import tagging

router = APIRouter(prefix="/api/videos/features", tags=["features"])

@router.get('/pending-desktop', response_model=List[DesktopTagTarget])
async def pending_desktop(limit: int = Query(5), db: AsyncSession = Depends(get_db)):
    """Approved videos the desktop tagger has not processed yet (limit clamped to 1..50)."""
    return await tagging.pending_desktop_targets(db, limit)

@router.post('/auto-tags')
async def save_auto_tags(data: AutoTagRequest, db: AsyncSession = Depends(get_db)):
    tags = await tagging.save_desktop_auto_tags(db, data)
    return {"videoNo": data.video_no, "tags": tags}
