"""Pydantic schemas for projects and memberships."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from typing import Optional

from taskboard.schemas.user import UserBrief


class ProjectCreate(BaseModel):
    title: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class ProjectResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    organizer_id: int
    created_at: datetime
    ai_summary_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MemberAdd(BaseModel):
    email: EmailStr


class MemberResponse(BaseModel):
    user: UserBrief
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InsightsResponse(BaseModel):
    project_id: int
    summary: Optional[str]
    generated_at: Optional[datetime]
