from typing import List, Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.deps import get_current_user, get_optional_user
from app.db.database import get_db
from app.schemas.video import (
    VideoSummary, VideoPage, VideoUpdateRequest, ReactionResponse, ViewCountResponse, HomeSummary,
)
from app.services import video_service

router = APIRouter(prefix="/api/videos", tags=["videos"])

@router.post('', response_model=VideoSummary)
async def upload_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    file: UploadFile = File(...),
    tags: Optional[List[str]] = Form(None),
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await video_service.upload(db, user_id, title, description, tags, file)

@router.get('/my', response_model=List[VideoSummary])
async def my_videos(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await video_service.my_videos(db, user_id)

@router.get('/public', response_model=VideoPage)
async def public_videos(
    page: int = Query(0, ge=0),
    size: int = Query(video_service.DEFAULT_PAGE_SIZE),
    keyword: Optional[str] = None,
    tags: Optional[str] = None,
    user_id: Optional[str] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await video_service.public_videos(db, keyword, video_service.parse_tag_param(tags), page, size, user_id)

@router.get('/home-summary', response_model=HomeSummary)
async def home_summary(db: AsyncSession = Depends(get_db)):
    return await video_service.home_summary(db)

@router.get('/{video_no}/stream')
async def stream_video(video_no: int, db: AsyncSession = Depends(get_db)):
    target = await video_service.stream_target(db, video_no)
    if target is None:
        raise HTTPException(status_code=404, detail="Video file not found")
    encoded = quote(target.file_name)
    return FileResponse(
        target.path,
        media_type=target.content_type,
        headers={"Content-Disposition": f"inline; filename=\"{encoded}\"; filename*=UTF-8''{encoded}"},
    )

@router.delete('/{video_no}', status_code=204)
async def delete_video(video_no: int, user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await video_service.delete_my_video(db, user_id, video_no)
    return Response(status_code=204)

@router.patch('/{video_no}', response_model=VideoSummary)
async def update_video(video_no: int, data: VideoUpdateRequest, user_id: str = Depends(get_current_user),
                       db: AsyncSession = Depends(get_db)):
    return await video_service.update_my_video(db, user_id, video_no, data)

@router.patch('/{video_no}/reaction', response_model=ReactionResponse)
async def toggle_reaction(video_no: int, action: str, user_id: str = Depends(get_current_user),
                          db: AsyncSession = Depends(get_db)):
    result = await video_service.toggle_reaction(db, user_id, video_no, action)
    return ReactionResponse(like_count=result.like_count, dislike_count=result.dislike_count,
                            my_reaction=result.my_reaction)

@router.post('/{video_no}/view', response_model=ViewCountResponse)
async def increase_view(video_no: int, db: AsyncSession = Depends(get_db)):
    return ViewCountResponse(view_count=await video_service.increase_view_count(db, video_no))
