"""Card lifecycle: completion, status, archive/restore, assignment and edits."""

import logging
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from taskboard.core.exceptions import NotFoundError, ValidationFailure
from taskboard.models.task import Task, TaskStatus
from taskboard.models.user import User
from taskboard.services.access_service import (
    BOARD_ROLES,
    Principal,
    guard_project,
    guard_task,
    load_project,
)
from taskboard.services.ordering_service import naive_utc

logger = logging.getLogger(__name__)

UNASSIGNED = "unassigned"


def toggle_completion(db: Session, principal: Principal, task_id: int) -> Task:
    """Flip completion. Two consecutive calls give back the original status."""
    task = guard_task(db, principal, task_id, BOARD_ROLES)

    if task.status == TaskStatus.COMPLETED:
        task.status = task.reopen_status or TaskStatus.IN_PROGRESS
        task.reopen_status = None
    else:
        task.reopen_status = task.status
        task.status = TaskStatus.COMPLETED

    db.commit()
    db.refresh(task)
    logger.info("user %s toggled card %s -> %s", principal.user_id, task.id, task.status.value)
    return task


def set_status(db: Session, principal: Principal, task_id: int, status: TaskStatus) -> Task:
    task = guard_task(db, principal, task_id, BOARD_ROLES)
    task.status = status
    task.reopen_status = None
    db.commit()
    db.refresh(task)
    logger.info("user %s set card %s status to %s", principal.user_id, task.id, status.value)
    return task


def archive_task(db: Session, principal: Principal, task_id: int) -> Task:
    # the column is not renumbered; the remaining cards keep their relative order
    task = guard_task(db, principal, task_id, BOARD_ROLES)
    if task.is_archived:
        return task

    task.is_archived = True
    task.archived_at = datetime.utcnow()
    db.commit()
    db.refresh(task)
    logger.info("user %s archived card %s", principal.user_id, task.id)
    return task


def restore_task(db: Session, principal: Principal, task_id: int) -> Task:
    # the card comes back with its old order value until it is moved again
    task = guard_task(db, principal, task_id, BOARD_ROLES)
    if not task.is_archived:
        return task

    task.is_archived = False
    task.archived_at = None
    db.commit()
    db.refresh(task)
    logger.info("user %s restored card %s", principal.user_id, task.id)
    return task


def assign_task(db: Session, principal: Principal, task_id: int,
                user_id: Union[int, str, None]) -> Task:
    """Assign a card to the organizer or a member of its project, or clear it."""
    task = guard_task(db, principal, task_id, BOARD_ROLES)

    if user_id is None or user_id == UNASSIGNED:
        task.assigned_to_user_id = None
    else:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User", user_id)
        project = load_project(db, task.project_id)
        if user.id != project.organizer_id and user.id not in project.member_ids():
            raise ValidationFailure("Cards can only be assigned to project members", field="user_id")
        task.assigned_to_user_id = user.id

    db.commit()
    db.refresh(task)
    logger.info("user %s assigned card %s to %s", principal.user_id, task.id, task.assigned_to_user_id)
    return task


def edit_task(
    db: Session,
    principal: Principal,
    task_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Task:
    task = guard_task(db, principal, task_id, BOARD_ROLES)

    if title is not None and not title.strip():
        raise ValidationFailure("Title is required", field="title")
    if description is not None and not description.strip():
        raise ValidationFailure("Description is required", field="description")
    new_start = naive_utc(start_date) or task.start_date
    new_end = naive_utc(end_date) or task.end_date
    if new_end < new_start:
        raise ValidationFailure("End date cannot be before start date", field="end_date")

    if title is not None:
        task.title = title.strip()
    if description is not None:
        task.description = description.strip()
    task.start_date = new_start
    task.end_date = new_end

    db.commit()
    db.refresh(task)
    return task


def list_archived(db: Session, principal: Principal, project_id: int) -> List[Task]:
    project = guard_project(db, principal, project_id, BOARD_ROLES)
    return db.query(Task).filter(
        Task.project_id == project.id,
        Task.is_archived == True
    ).order_by(Task.archived_at.desc(), Task.id.desc()).all()
