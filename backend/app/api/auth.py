from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.database import get_db
from app.api.deps import get_current_user
from app.core.errors import DomainError
from app.core.security import create_access_token, ROLE_USER
from app.schemas.auth import (
    RegisterRequest, LoginRequest, LoginResponse, UserResponse, DuplicateCheckResponse,
    EmailCodeSendRequest, EmailCodeVerifyRequest, NicknameUpdateRequest, PasswordChangeRequest,
    ProfileImageUpdateRequest, SimpleMessage,
)
from app.services import user_service, email_verification

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post('/register', response_model=UserResponse)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.register(db, data.user_id.strip(), data.password, data.nickname.strip(),
                                       data.email.strip().lower(), data.gender, data.age)
    if data.profile_image:
        user = await user_service.update_profile_image(db, user.user_id, data.profile_image)
    return user

@router.post('/login', response_model=LoginResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.authenticate(db, data.user_id, data.password)
    token = create_access_token(user.user_id, roles=[ROLE_USER])
    return LoginResponse(token=token, user=UserResponse.model_validate(user))

@router.get('/me', response_model=UserResponse)
async def me(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await user_service.get_by_user_id(db, user_id)

def _check(taken: bool, label: str) -> DuplicateCheckResponse:
    if taken:
        return DuplicateCheckResponse(available=False, message=f"{label} is already in use")
    return DuplicateCheckResponse(available=True, message=f"{label} is available")

@router.get('/check-userid', response_model=DuplicateCheckResponse)
async def check_user_id(userId: str, db: AsyncSession = Depends(get_db)):
    return _check(await user_service.user_id_taken(db, userId), "userId")

@router.get('/check-nickname', response_model=DuplicateCheckResponse)
async def check_nickname(nickname: str, db: AsyncSession = Depends(get_db)):
    return _check(await user_service.nickname_taken(db, nickname), "nickname")

@router.get('/check-email', response_model=DuplicateCheckResponse)
async def check_email(email: str, db: AsyncSession = Depends(get_db)):
    return _check(await user_service.email_taken(db, email.strip().lower()), "email")

@router.post('/email/send-code', response_model=SimpleMessage)
async def send_email_code(data: EmailCodeSendRequest, db: AsyncSession = Depends(get_db)):
    if await user_service.email_taken(db, data.email.strip().lower()):
        raise DomainError("email already in use")
    await email_verification.send_code(db, data.email)
    return SimpleMessage(message="verification code sent")

@router.post('/email/verify-code', response_model=SimpleMessage)
async def verify_email_code(data: EmailCodeVerifyRequest, db: AsyncSession = Depends(get_db)):
    await email_verification.verify_code(db, data.email, data.code)
    return SimpleMessage(message="email verified")

@router.patch('/nickname', response_model=UserResponse)
async def update_nickname(data: NicknameUpdateRequest, user_id: str = Depends(get_current_user),
                          db: AsyncSession = Depends(get_db)):
    return await user_service.change_nickname(db, user_id, data.nickname)

@router.post('/password')
async def change_password(data: PasswordChangeRequest, user_id: str = Depends(get_current_user),
                          db: AsyncSession = Depends(get_db)):
    await user_service.change_password(db, user_id, data.current_password, data.new_password)
    return {"status": "ok"}

@router.patch('/profile-image', response_model=UserResponse)
async def update_profile_image(data: ProfileImageUpdateRequest, user_id: str = Depends(get_current_user),
                               db: AsyncSession = Depends(get_db)):
    return await user_service.update_profile_image(db, user_id, data.profile_image)
