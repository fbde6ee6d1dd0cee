import logging
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import DomainError
from app.core.security import verify_password, hash_password, create_access_token, ROLE_ADMIN
from app.models.user import User, Admin
from app.models.video import Video, BLOCKED, NOT_BLOCKED
from app.schemas.admin import AdminLoginResponse, AdminUserSummary, BlockedVideo
from app.services import catalogue, feature_store, reactions

logger = logging.getLogger(__name__)

ISO_FMT = "%Y-%m-%dT%H:%M:%S"

def _fmt(dt: datetime | None) -> str | None:
    return dt.strftime(ISO_FMT) if dt else None

async def login(db: AsyncSession, admin_id: str, password: str) -> AdminLoginResponse:
    admin = (await db.execute(select(Admin).where(Admin.admin_id == admin_id))).scalar_one_or_none()
    if admin is None or not verify_password(password, admin.password):
        raise DomainError("invalid admin id or password")
    role = admin.admin_role or ROLE_ADMIN
    token = create_access_token(admin.admin_id, roles=[role.removeprefix('ROLE_')])
    admin.last_login_at = datetime.now()
    await db.commit()
    return AdminLoginResponse(token=token, admin_id=admin.admin_id, admin_name=admin.admin_name, role=role)

async def create_admin(db: AsyncSession, admin_id: str, password: str, name: str, email: str | None = None) -> Admin:
    admin = Admin(admin_id=admin_id, password=hash_password(password), admin_name=name, admin_email=email)
    db.add(admin)
    await db.commit()
    return admin

async def list_users(db: AsyncSession) -> list[AdminUserSummary]:
    users = (await db.execute(select(User).order_by(User.user_no))).scalars().all()
    return [
        AdminUserSummary(user_no=u.user_no, user_id=u.user_id, nickname=u.nickname, email=u.email,
                         token_count=u.token_count or 0, status='ACTIVE', created_at=_fmt(u.created_at))
        for u in users
    ]

async def list_blocked_videos(db: AsyncSession) -> list[BlockedVideo]:
    blocked = await catalogue.find_by_is_blocked(db, BLOCKED)
    if not blocked:
        return []
    user_nos = {v.user_no for v in blocked}
    uploaders = {u.user_no: u for u in (await db.execute(select(User).where(User.user_no.in_(user_nos)))).scalars()}
    out = []
    for v in blocked:
        u = uploaders.get(v.user_no)
        out.append(BlockedVideo(
            video_no=v.video_no, title=v.title,
            uploader_nickname=u.nickname if u else None, uploader_id=u.user_id if u else None,
            view_count=v.view_count or 0, created_at=_fmt(v.upload_date),
        ))
    return out

async def approve_video(db: AsyncSession, video_no: int) -> Video:
    """Unblock a video. reviewStatus is left as the reviewer set it."""
    video = await catalogue.get_or_raise(db, video_no)
    video.is_blocked = NOT_BLOCKED
    await db.commit()
    logger.info("admin approved video_no=%s (reviewStatus=%s)", video_no, video.review_status)
    return video

async def delete_video(db: AsyncSession, video_no: int) -> None:
    video = await catalogue.get_or_raise(db, video_no)
    await feature_store.delete_by_video(db, video_no)
    await reactions.delete_by_video(db, video_no)
    await db.delete(video)
    await db.commit()
    logger.info("admin deleted video_no=%s", video_no)
