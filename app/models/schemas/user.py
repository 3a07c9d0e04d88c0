from pydantic import BaseModel, ConfigDict, Field, EmailStr
from uuid import UUID, uuid4
from datetime import datetime, timezone


class User(BaseModel):
    user_id: UUID = Field(default_factory=uuid4)
    user_name: str
    email: EmailStr
    hashed_password: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_superuser: bool = False   # admin role; required to delete commitments
    is_active: bool = True
    is_deleted: bool = False
    is_current: bool = True

class RefreshToken(BaseModel):
    refresh_token_id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    expires_at: datetime
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_current: bool = True
    is_deleted: bool = False

class RegisterRequest(BaseModel):
    user_name: str
    email: EmailStr
    password: str  # Raw password; will be hashed on creation

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class UserOut(BaseModel):
    user_id: UUID
    user_name: str
    email: EmailStr
    is_superuser: bool = False
    is_active: bool = True
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
