from pydantic import BaseModel, EmailStr, ConfigDict
from datetime import datetime
from typing import Optional
from taskboard.models.user import UserRole

class UserCreate(BaseModel):
    email: EmailStr
    username: str
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UserBrief(BaseModel):
    id: int
    email: str
    username: str

    model_config = ConfigDict(from_attributes=True)

class UserAdminView(UserResponse):
    projects_count: int
    tasks_count: int

class RoleUpdate(BaseModel):
    role: UserRole

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
