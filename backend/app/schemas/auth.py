from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class RegisterRequest(_Camel):
    user_id: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1)
    nickname: str = Field(min_length=1, max_length=50)
    gender: Optional[str] = None
    age: Optional[int] = None
    email: str = Field(min_length=3)
    profile_image: Optional[str] = None

class LoginRequest(_Camel):
    user_id: str
    password: str

class UserResponse(_Camel):
    user_no: int
    user_id: str
    nickname: str
    gender: Optional[str] = None
    age: Optional[int] = None
    email: str
    profile_image: Optional[str] = None
    token_count: int = 0
    created_at: Optional[datetime] = None

class LoginResponse(_Camel):
    token: str
    user: UserResponse

class DuplicateCheckResponse(_Camel):
    available: bool
    message: str

class EmailCodeSendRequest(_Camel):
    email: str

class EmailCodeVerifyRequest(_Camel):
    email: str
    code: str

class NicknameUpdateRequest(_Camel):
    nickname: str = Field(min_length=1, max_length=50)

class PasswordChangeRequest(_Camel):
    current_password: str
    new_password: str = Field(min_length=1)

class ProfileImageUpdateRequest(_Camel):
    profile_image: Optional[str] = None

class SimpleMessage(_Camel):
    message: str
