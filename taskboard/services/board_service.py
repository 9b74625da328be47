"""Board service"""

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session, selectinload

from taskboard.core.exceptions import ValidationFailure
from taskboard.models.column import BoardColumn
from taskboard.models.comment import Comment
from taskboard.models.label import BoardLabel
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.services.access_service import (
    BOARD_ROLES,
    VIEW_ROLES,
    Principal,
    guard_project,
    guard_task,
    load_project,
    require_role,
)
from taskboard.services.attachment_service import attach_image, attach_label, check_image, check_label_name
from taskboard.services.ordering_service import insert_task

logger = logging.getLogger(__name__)


def get_board(db: Session, principal: Principal, project_id: int) -> dict:
    """Snapshot of a board: columns in order, each with its active cards in order."""
    project = load_project(db, project_id)
    role = require_role(principal, project, VIEW_ROLES)

    columns = db.query(BoardColumn).filter(
        BoardColumn.project_id == project.id
    ).order_by(BoardColumn.order, BoardColumn.id).all()

    tasks = db.query(Task).options(
        selectinload(Task.labels),
        selectinload(Task.images),
        selectinload(Task.assignee),
    ).filter(
        Task.project_id == project.id,
        Task.is_archived == False
    ).order_by(Task.order, Task.id).all()

    by_column = {column.id: [] for column in columns}
    for task in tasks:
        if task.column_id in by_column:
            by_column[task.column_id].append(task)

    labels = db.query(BoardLabel).filter(
        BoardLabel.project_id == project.id
    ).order_by(BoardLabel.name).all()

    return {
        "project": project,
        "role": role.value,
        "columns": [
            {
                "id": column.id,
                "project_id": column.project_id,
                "title": column.title,
                "order": column.order,
                "tasks": by_column[column.id],
            }
            for column in columns
        ],
        "labels": labels,
        "members": project_people(project),
    }


def project_people(project: Project) -> List[User]:
    """Organizer first, then members by join date."""
    people = [project.organizer]
    for membership in sorted(project.members, key=lambda m: (m.joined_at, m.user_id)):
        if membership.user_id != project.organizer_id:
            people.append(membership.user)
    return people


def get_card(db: Session, principal: Principal, task_id: int) -> Task:
    return guard_task(db, principal, task_id, VIEW_ROLES)


def add_card(
    db: Session,
    principal: Principal,
    project_id: int,
    column_id: int,
    title: str,
    description: Optional[str] = None,
    labels: Sequence[str] = (),
    cover_image: Optional[Tuple[bytes, str]] = None,
) -> Task:
    """Create a card at the end of a column, then attach its labels and cover image.

    Labels and cover are checked before anything is written: a rejected
    request leaves no card behind.
    """
    guard_project(db, principal, project_id, BOARD_ROLES)
    label_names = [check_label_name(name) for name in labels if name.strip()]
    if cover_image is not None:
        check_image(cover_image[0])

    task = insert_task(db, principal, project_id, column_id, title, description)

    for name in label_names:
        attach_label(db, principal, task.id, name)
    if cover_image is not None:
        content, filename = cover_image
        attach_image(db, principal, task.id, content, filename)

    db.refresh(task)
    return task


def add_comment(db: Session, principal: Principal, task_id: int, content: str) -> Comment:
    task = guard_task(db, principal, task_id, BOARD_ROLES)

    content = (content or "").strip()
    if not content:
        raise ValidationFailure("Comment cannot be empty", field="content")

    comment = Comment(task_id=task.id, user_id=principal.user_id, content=content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info("user %s commented on card %s", principal.user_id, task.id)
    return comment

