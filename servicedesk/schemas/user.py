"""User and authentication schemas"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Set
from datetime import datetime

EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'
USERNAME_PATTERN = r'^[a-zA-Z0-9_.-]+$'

# bcrypt only hashes the first 72 bytes and rejects longer input
MAX_PASSWORD_BYTES = 72


def check_password_length(v: Optional[str]) -> Optional[str]:
    if v is not None and len(v.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')
    return v


class UserLogin(BaseModel):
    """User login schema"""
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class UserRegister(BaseModel):
    """Self-service registration schema"""
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=8)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)

    @field_validator('email', 'username')
    @classmethod
    def lowercase(cls, v):
        return v.strip().lower()

    @field_validator('password')
    @classmethod
    def password_length(cls, v):
        return check_password_length(v)


class UserCreate(UserRegister):
    """Admin user creation schema"""
    role_ids: List[int] = Field(default_factory=list)
    is_active: bool = True
    is_verified: bool = False


class UserUpdate(BaseModel):
    """Admin user update schema; omitted fields are left untouched"""
    email: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    username: Optional[str] = Field(None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: Optional[str] = Field(None, min_length=8)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None
    role_ids: Optional[List[int]] = None

    @field_validator('email', 'username')
    @classmethod
    def lowercase(cls, v):
        return v.strip().lower() if v is not None else v

    @field_validator('email', 'username', 'is_active', 'is_verified')
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v

    @field_validator('password')
    @classmethod
    def password_length(cls, v):
        return check_password_length(v)


class RoleSummary(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """User response schema"""
    id: int
    email: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    is_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    roles: List[RoleSummary] = []

    class Config:
        from_attributes = True


class CurrentUserResponse(UserResponse):
    """Authenticated user with effective permission tags"""
    permissions: Set[str] = set()


class LoginResponse(BaseModel):
    """Login result: user plus token pair"""
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=10)


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None
