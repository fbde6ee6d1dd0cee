from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class AdminLoginRequest(_Camel):
    username: str
    password: str

class AdminLoginResponse(_Camel):
    token: str
    admin_id: str
    admin_name: str
    role: str

class AdminUserSummary(_Camel):
    user_no: int
    user_id: str
    nickname: str
    email: str
    token_count: int = 0
    status: str = 'ACTIVE'
    created_at: Optional[str] = None  # yyyy-MM-ddTHH:mm:ss

class BlockedVideo(_Camel):
    video_no: int
    title: str
    uploader_nickname: Optional[str] = None
    uploader_id: Optional[str] = None
    view_count: int = 0
    created_at: Optional[str] = None
