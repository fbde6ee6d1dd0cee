from fastapi import Depends, HTTPException, Header
from typing import Optional
from app.core.security import decode_token, ROLE_USER, ROLE_ADMIN

def _unauthorized(detail: str = "Invalid token"):
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})

async def get_token_payload(authorization: Optional[str] = Header(None)) -> Optional[dict]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == 'bearer':
        payload = decode_token(parts[1])
        if payload and payload.get('sub'):
            return payload
    raise _unauthorized()

async def get_optional_user(payload: Optional[dict] = Depends(get_token_payload)) -> Optional[str]:
    """userId of a member token, or None for anonymous (and admin) callers."""
    if payload and ROLE_USER in (payload.get('roles') or []):
        return payload['sub']
    return None

async def get_current_user(payload: Optional[dict] = Depends(get_token_payload)) -> str:
    if not payload:
        raise _unauthorized("Not authenticated")
    return payload['sub']

async def require_admin(payload: Optional[dict] = Depends(get_token_payload)) -> str:
    if not payload:
        raise _unauthorized("Not authenticated")
    if ROLE_ADMIN not in (payload.get('roles') or []):
        raise HTTPException(status_code=403, detail="Admin role required")
    return payload['sub']
