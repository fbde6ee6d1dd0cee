from typing import List
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.deps import require_admin
from app.db.database import get_db
from app.schemas.admin import AdminLoginRequest, AdminLoginResponse, AdminUserSummary, BlockedVideo
from app.services import admin_service

router = APIRouter(prefix="/api/admin", tags=["admin"])

@router.post('/login', response_model=AdminLoginResponse)
async def login(data: AdminLoginRequest, db: AsyncSession = Depends(get_db)):
    return await admin_service.login(db, data.username, data.password)

@router.get('/users', response_model=List[AdminUserSummary])
async def users(_: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await admin_service.list_users(db)

@router.get('/videos/blocked', response_model=List[BlockedVideo])
async def blocked_videos(_: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await admin_service.list_blocked_videos(db)

@router.post('/videos/{video_no}/approve')
async def approve_video(video_no: int, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    video = await admin_service.approve_video(db, video_no)
    return {"videoNo": video.video_no, "isBlocked": video.is_blocked, "reviewStatus": video.review_status}

@router.delete('/videos/{video_no}', status_code=204)
async def delete_video(video_no: int, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    await admin_service.delete_video(db, video_no)
    return Response(status_code=204)
