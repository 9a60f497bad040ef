from datetime import datetime

from pydantic import Field, StrictInt

from pharmapos.models.user import UserRole
from pharmapos.schemas.common import ApiModel, RequestModel


class UserCreate(RequestModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    role: str = UserRole.SALES.value


class UserRoleUpdate(RequestModel):
    user_id: StrictInt
    role: str


class UserRead(ApiModel):
    id: int
    name: str
    email: str
    role: str
    created_at: datetime


class LoginRequest(RequestModel):
    email: str
    password: str


class TokenRead(ApiModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
