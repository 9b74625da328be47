"""
Router du board Kanban.

Toutes les mutations passent par access_service (Admin / Organizer / Member)
avant de toucher à l'état; les erreurs métier sont rendues par main.py.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional

from taskboard.core.config import settings
from taskboard.core.database import get_db
from taskboard.core.deps import get_principal
from taskboard.schemas.board import (
    AssignRequest,
    BoardResponse,
    CardEdit,
    ColumnCreate,
    ColumnDelete,
    ColumnResponse,
    CommentCreate,
    CommentResponse,
    ImageResponse,
    LabelRequest,
    LabelResponse,
    MoveCardRequest,
    StatusUpdate,
    TaskDetailResponse,
    TaskRef,
    TaskResponse,
)
from taskboard.services import attachment_service, board_service, lifecycle_service, ordering_service
from taskboard.services.access_service import Principal

router = APIRouter(prefix="/board", tags=["board"])


def read_upload(upload: UploadFile) -> bytes:
    # un octet de plus que la limite suffit pour refuser un fichier trop gros
    return upload.file.read(settings.MAX_IMAGE_BYTES + 1)


#LECTURE

@router.get("/card/{task_id}", response_model=TaskDetailResponse)
def get_card(task_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return board_service.get_card(db, principal, task_id)


@router.get("/{project_id}", response_model=BoardResponse)
def view_board(project_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return board_service.get_board(db, principal, project_id)


@router.get("/{project_id}/archived", response_model=List[TaskResponse])
def archived_cards(project_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return lifecycle_service.list_archived(db, principal, project_id)


#COLONNES

@router.post("/addColumn", response_model=ColumnResponse, status_code=status.HTTP_201_CREATED)
def add_column(data: ColumnCreate, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return ordering_service.add_column(db, principal, data.project_id, data.title)


@router.post("/deleteColumn")
def delete_column(data: ColumnDelete, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    removed = ordering_service.delete_column(db, principal, data.column_id)
    return {"ok": True, "removed_tasks": removed}


#CARTES

@router.post("/addCard", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def add_card(
    project_id: int = Form(...),
    column_id: int = Form(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    labels: Optional[str] = Form(None),
    cover_image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    """Ajoute une carte en fin de colonne.

    `labels` est une liste séparée par des virgules ("bug, urgent").
    """
    label_names = [name.strip() for name in (labels or "").split(",") if name.strip()]
    cover = None
    if cover_image is not None and cover_image.filename:
        cover = (read_upload(cover_image), cover_image.filename)

    return board_service.add_card(
        db, principal, project_id, column_id, title,
        description=description,
        labels=label_names,
        cover_image=cover
    )


@router.post("/moveCard", response_model=TaskResponse)
def move_card(data: MoveCardRequest, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return ordering_service.move_task(db, principal, data.task_id, data.target_column_id, data.index)


@router.post("/toggleCard", response_model=TaskResponse)
def toggle_card(data: TaskRef, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return lifecycle_service.toggle_completion(db, principal, data.task_id)


@router.post("/setStatus", response_model=TaskResponse)
def set_status(data: StatusUpdate, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return lifecycle_service.set_status(db, principal, data.task_id, data.status)


@router.post("/archiveTask", response_model=TaskResponse)
def archive_task(data: TaskRef, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return lifecycle_service.archive_task(db, principal, data.task_id)


@router.post("/restoreTask", response_model=TaskResponse)
def restore_task(data: TaskRef, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return lifecycle_service.restore_task(db, principal, data.task_id)


@router.post("/assignTask", response_model=TaskResponse)
def assign_task(data: AssignRequest, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return lifecycle_service.assign_task(db, principal, data.task_id, data.user_id)


@router.post("/editCard", response_model=TaskResponse)
def edit_card(data: CardEdit, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return lifecycle_service.edit_task(
        db, principal, data.task_id,
        title=data.title,
        description=data.description,
        start_date=data.start_date,
        end_date=data.end_date
    )


#LABELS / IMAGES / COMMENTAIRES

@router.post("/addLabel", response_model=LabelResponse)
def add_label(data: LabelRequest, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return attachment_service.attach_label(db, principal, data.task_id, data.name)


@router.post("/removeLabel", response_model=TaskResponse)
def remove_label(data: LabelRequest, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return attachment_service.detach_label(db, principal, data.task_id, data.name)


@router.post("/addImage", response_model=ImageResponse, status_code=status.HTTP_201_CREATED)
def add_image(
    task_id: int = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    return attachment_service.attach_image(db, principal, task_id, read_upload(file), file.filename)


@router.post("/addComment", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(data: CommentCreate, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return board_service.add_comment(db, principal, data.task_id, data.content)
