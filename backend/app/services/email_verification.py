import asyncio, logging, secrets
from datetime import datetime, timedelta
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import DomainError
from app.core.security import pwd_context
from app.models.user import EmailVerification
from app.services import mail

logger = logging.getLogger(__name__)

EXPIRE_MINUTES = 10
RECENT_HOURS = 24

CODE_MAIL_HTML = """<div style="font-family: system-ui,-apple-system,BlinkMacSystemFont,'Noto Sans KR',sans-serif;">
  <h2>이메일 인증</h2>
  <p>아래 인증번호를 {minutes}분 이내에 입력해 주세요.</p>
  <div style="margin-top:16px;font-size:28px;font-weight:700;letter-spacing:4px;">{code}</div>
</div>"""

def _normalize(email: str | None) -> str:
    return (email or '').strip().lower()

def make_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"

async def _latest(db: AsyncSession, email: str) -> EmailVerification | None:
    res = await db.execute(
        select(EmailVerification).where(EmailVerification.email == email)
        .order_by(EmailVerification.created_at.desc(), EmailVerification.id.desc())
        .limit(1)
    )
    return res.scalars().first()

async def send_code(db: AsyncSession, raw_email: str) -> None:
    email = _normalize(raw_email)
    if not email:
        raise DomainError("email is required")
    code = make_code()
    now = datetime.now()
    try:
        await asyncio.to_thread(
            mail.send_html, email, "[AI 콜렉터] 이메일 인증번호",
            CODE_MAIL_HTML.format(minutes=EXPIRE_MINUTES, code=code),
        )
    except mail.MailError as e:
        raise DomainError("failed to send verification mail, try again later") from e
    db.add(EmailVerification(
        email=email, code_hash=pwd_context.hash(code), attempts=0,
        created_at=now, expires_at=now + timedelta(minutes=EXPIRE_MINUTES),
    ))
    await db.commit()
    logger.info("email code sent to=%s", email)

async def verify_code(db: AsyncSession, raw_email: str, raw_code: str | None) -> None:
    email = _normalize(raw_email)
    code = (raw_code or '').strip()
    latest = await _latest(db, email)
    if latest is None:
        raise DomainError("no verification request for this email")
    if latest.verified_at is not None:
        return
    if datetime.now() > latest.expires_at:
        raise DomainError("verification code expired")
    if not pwd_context.verify(code, latest.code_hash):
        latest.attempts = (latest.attempts or 0) + 1
        await db.commit()
        raise DomainError("verification code does not match")
    latest.verified_at = datetime.now()
    await db.commit()

async def is_recently_verified(db: AsyncSession, raw_email: str) -> bool:
    latest = await _latest(db, _normalize(raw_email))
    if latest is None or latest.verified_at is None:
        return False
    return latest.verified_at > datetime.now() - timedelta(hours=RECENT_HOURS)
