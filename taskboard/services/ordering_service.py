"""
Ordering of cards and columns on a board.

Active cards of a column carry order values 0..n-1 matching display order.
Inserting appends after the current maximum; moving renumbers the whole
destination column. Every renumbering bumps the version of each column it touches
(destination, and source on a cross-column move) through a
conditional UPDATE, so a writer that read an older version fails with a
ConflictError instead of silently overwriting another move.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from taskboard.core.exceptions import ConflictError, NotFoundError, ValidationFailure
from taskboard.models.column import BoardColumn
from taskboard.models.task import Task, TaskStatus
from taskboard.services.access_service import (
    BOARD_ROLES,
    MANAGE_ROLES,
    Principal,
    guard_project,
    guard_task,
)

logger = logging.getLogger(__name__)

_locks_guard = threading.Lock()
_project_locks: Dict[int, threading.Lock] = {}


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC; aware inputs are converted."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def project_lock(project_id: int) -> threading.Lock:
    """One lock per project; ordering work on different projects never contends."""
    with _locks_guard:
        lock = _project_locks.get(project_id)
        if lock is None:
            lock = _project_locks[project_id] = threading.Lock()
        return lock


def release_project_lock(project_id: int) -> None:
    with _locks_guard:
        _project_locks.pop(project_id, None)


def bump_column_version(db: Session, column_id: int, seen_version: int) -> None:
    """Advance the column version, but only from the version this writer read."""
    result = db.execute(
        update(BoardColumn)
        .where(BoardColumn.id == column_id, BoardColumn.version == seen_version)
        .values(version=seen_version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.warning("stale ordering write on column %s (read version %s)", column_id, seen_version)
        raise ConflictError("The column was reordered by someone else, reload the board and retry")


def load_column(db: Session, column_id: int, project_id: int) -> BoardColumn:
    # a column of another project is reported as missing
    column = db.query(BoardColumn).filter(
        BoardColumn.id == column_id,
        BoardColumn.project_id == project_id
    ).first()
    if column is None:
        raise NotFoundError("Column", column_id)
    return column


def active_tasks(db: Session, column_id: int, exclude_task_id: Optional[int] = None) -> List[Task]:
    query = db.query(Task).filter(
        Task.column_id == column_id,
        Task.is_archived == False
    )
    if exclude_task_id is not None:
        query = query.filter(Task.id != exclude_task_id)
    return query.order_by(Task.order, Task.id).all()


def insert_task(
    db: Session,
    principal: Principal,
    project_id: int,
    column_id: int,
    title: str,
    description: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Task:
    """Create a card at the end of a column (max active order + 1, 0 when empty)."""
    project = guard_project(db, principal, project_id, BOARD_ROLES)

    title = (title or "").strip()
    if not title:
        raise ValidationFailure("Title is required", field="title")
    description = (description or "").strip() or title
    start_date = naive_utc(start_date) or datetime.utcnow()
    end_date = naive_utc(end_date) or start_date + timedelta(days=1)
    if end_date < start_date:
        raise ValidationFailure("End date cannot be before start date", field="end_date")

    with project_lock(project.id):
        column = load_column(db, column_id, project.id)
        seen_version = column.version

        max_order = db.query(func.max(Task.order)).filter(
            Task.column_id == column.id,
            Task.is_archived == False
        ).scalar()

        task = Task(
            project_id=project.id,
            column=column,
            title=title,
            description=description,
            status=TaskStatus.NOT_STARTED,
            order=(max_order + 1) if max_order is not None else 0,
            start_date=start_date,
            end_date=end_date,
        )
        db.add(task)
        bump_column_version(db, column.id, seen_version)
        db.commit()

    db.refresh(task)
    logger.info("user %s added card %s to column %s (project %s)", principal.user_id, task.id, column_id, project.id)
    return task


def move_task(db: Session, principal: Principal, task_id: int, target_column_id: int, target_index: int) -> Task:
    """Place a card at `target_index` of a column and renumber that column 0..n-1.

    Same-column moves take the same path: the card is removed from the
    sequence, then reinserted.
    """
    task = guard_task(db, principal, task_id, BOARD_ROLES)

    with project_lock(task.project_id):
        column = load_column(db, target_column_id, task.project_id)
        if task.is_archived:
            raise ValidationFailure("Archived cards must be restored before they can be moved")

        # the card leaves the source sequence too: both versions are checked
        seen_versions = {column.id: column.version}
        if task.column_id is not None and task.column_id != column.id:
            source = load_column(db, task.column_id, task.project_id)
            seen_versions[source.id] = source.version

        sequence = active_tasks(db, column.id, exclude_task_id=task.id)
        index = max(0, min(target_index, len(sequence)))

        task.column = column
        sequence.insert(index, task)

        for position, card in enumerate(sequence):
            if card.order != position:
                card.order = position

        for column_id in sorted(seen_versions):
            bump_column_version(db, column_id, seen_versions[column_id])
        db.commit()

    db.refresh(task)
    logger.info("user %s moved card %s to column %s at %s", principal.user_id, task.id, column.id, index)
    return task


def add_column(db: Session, principal: Principal, project_id: int, title: str) -> BoardColumn:
    project = guard_project(db, principal, project_id, BOARD_ROLES)

    title = (title or "").strip()
    if not title:
        raise ValidationFailure("Column title is required", field="title")

    with project_lock(project.id):
        max_order = db.query(func.max(BoardColumn.order)).filter(
            BoardColumn.project_id == project.id
        ).scalar()
        column = BoardColumn(
            project_id=project.id,
            title=title,
            order=(max_order + 1) if max_order is not None else 0,
        )
        db.add(column)
        db.commit()

    db.refresh(column)
    logger.info("user %s added column %s to project %s", principal.user_id, column.id, project.id)
    return column


def delete_column(db: Session, principal: Principal, column_id: int) -> int:
    """Delete a column and, with it, all of its cards. Returns the number of cards removed."""
    column = db.query(BoardColumn).filter(BoardColumn.id == column_id).first()
    if column is None:
        raise NotFoundError("Column", column_id)
    project = guard_project(db, principal, column.project_id, MANAGE_ROLES)

    with project_lock(project.id):
        removed = len(column.tasks)
        db.delete(column)
        db.commit()

    logger.info("user %s deleted column %s (%s cards) from project %s", principal.user_id, column_id, removed, project.id)
    return removed
