"""Pydantic schemas for the board: columns, cards, labels, images and comments."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List, Literal, Union

from taskboard.models.task import TaskStatus
from taskboard.schemas.user import UserBrief


# Réponses

class LabelResponse(BaseModel):
    id: int
    name: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class ImageResponse(BaseModel):
    id: int
    file_path: str
    original_file_name: Optional[str]
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentResponse(BaseModel):
    id: int
    content: str
    posted_at: datetime
    user: UserBrief

    model_config = ConfigDict(from_attributes=True)


class TaskResponse(BaseModel):
    id: int
    project_id: int
    column_id: Optional[int]
    title: str
    description: str
    status: TaskStatus
    is_completed: bool
    order: int
    is_archived: bool
    archived_at: Optional[datetime]
    start_date: datetime
    end_date: datetime
    assignee: Optional[UserBrief]
    labels: List[LabelResponse]
    images: List[ImageResponse]

    model_config = ConfigDict(from_attributes=True)


class TaskDetailResponse(TaskResponse):
    comments: List[CommentResponse]


class ColumnResponse(BaseModel):
    id: int
    project_id: int
    title: str
    order: int

    model_config = ConfigDict(from_attributes=True)


class BoardColumnView(ColumnResponse):
    tasks: List[TaskResponse]


class BoardProjectView(BaseModel):
    id: int
    title: str
    description: Optional[str]
    organizer_id: int

    model_config = ConfigDict(from_attributes=True)


class BoardResponse(BaseModel):
    project: BoardProjectView
    role: str
    columns: List[BoardColumnView]
    labels: List[LabelResponse]
    members: List[UserBrief]


# Requêtes

class ColumnCreate(BaseModel):
    project_id: int
    title: str = Field(max_length=100)


class ColumnDelete(BaseModel):
    column_id: int


class MoveCardRequest(BaseModel):
    task_id: int
    target_column_id: int
    index: int


class TaskRef(BaseModel):
    task_id: int


class StatusUpdate(BaseModel):
    task_id: int
    status: TaskStatus


class AssignRequest(BaseModel):
    task_id: int
    user_id: Union[int, Literal["unassigned"], None] = None


class CardEdit(BaseModel):
    task_id: int
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class LabelRequest(BaseModel):
    task_id: int
    name: str


class CommentCreate(BaseModel):
    task_id: int
    content: str = Field(max_length=500)
