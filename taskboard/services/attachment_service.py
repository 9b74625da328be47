"""
Labels and images attached to cards.

Labels are project-scoped and found-or-created by name; a new label takes
the next colour of a fixed palette (cycled by the project's label count) and
keeps it for good. Images are append-only: the bytes go to UPLOAD_DIR and
the card gets a TaskImage row pointing at them.
"""

import logging
import os
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.core.config import settings
from taskboard.core.exceptions import ValidationFailure
from taskboard.models.image import TaskImage
from taskboard.models.label import BoardLabel
from taskboard.models.task import Task
from taskboard.services.access_service import BOARD_ROLES, Principal, guard_task, load_task

logger = logging.getLogger(__name__)

LABEL_PALETTE = [
    "#61bd4f",  # green
    "#f2d600",  # yellow
    "#ff9f1a",  # orange
    "#eb5a46",  # red
    "#c377e0",  # purple
    "#0079bf",  # blue
    "#00c2e0",  # sky
    "#51e898",  # lime
    "#ff78cb",  # pink
    "#344563",  # black
]

MAX_LABEL_NAME = 50


def palette_color(existing_count: int) -> str:
    return LABEL_PALETTE[existing_count % len(LABEL_PALETTE)]


def _find_label(db: Session, project_id: int, name: str) -> Optional[BoardLabel]:
    return db.query(BoardLabel).filter(
        BoardLabel.project_id == project_id,
        BoardLabel.name == name
    ).first()


def find_or_create_label(db: Session, project_id: int, name: str) -> BoardLabel:
    """Return the project's label called `name`, creating it if needed.

    Commits the new label on its own; if another request created the same
    name in between, the unique constraint fires and that label is used.
    """
    label = _find_label(db, project_id, name)
    if label is not None:
        return label

    count = db.query(BoardLabel).filter(BoardLabel.project_id == project_id).count()
    label = BoardLabel(project_id=project_id, name=name, color=palette_color(count))
    db.add(label)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("label %r of project %s created concurrently, reusing it", name, project_id)
        return _find_label(db, project_id, name)
    db.refresh(label)
    return label


def check_label_name(name: str) -> str:
    """Trimmed label name, or ValidationFailure."""
    name = (name or "").strip()
    if not name:
        raise ValidationFailure("Label name is required", field="name")
    if len(name) > MAX_LABEL_NAME:
        raise ValidationFailure(f"Label name cannot exceed {MAX_LABEL_NAME} characters", field="name")
    return name


def check_image(content: bytes) -> None:
    if not content:
        raise ValidationFailure("The uploaded file is empty", field="file")
    if len(content) > settings.MAX_IMAGE_BYTES:
        raise ValidationFailure("The uploaded file is too large", field="file")


def attach_label(db: Session, principal: Principal, task_id: int, name: str) -> BoardLabel:
    task = guard_task(db, principal, task_id, BOARD_ROLES)
    name = check_label_name(name)

    label = find_or_create_label(db, task.project_id, name)
    # the label commit may have expired the card
    task = load_task(db, task_id)
    if label not in task.labels:
        task.labels.append(label)
        db.commit()
        logger.info("user %s labelled card %s with %r", principal.user_id, task.id, name)
    return label


def detach_label(db: Session, principal: Principal, task_id: int, name: str) -> Task:
    """Remove a label from a card. The label itself stays in the project."""
    task = guard_task(db, principal, task_id, BOARD_ROLES)
    label = _find_label(db, task.project_id, (name or "").strip())
    if label is not None and label in task.labels:
        task.labels.remove(label)
        db.commit()
        db.refresh(task)
    return task


def upload_path(file_path: str) -> str:
    """Filesystem location of a stored `file_path` ("<upload dir name>/<file>")."""
    return os.path.join(settings.UPLOAD_DIR, os.path.basename(file_path))


def store_upload(content: bytes, original_name: str) -> str:
    """Write the bytes under UPLOAD_DIR and return "<upload dir name>/<file>"."""
    ext = os.path.splitext(original_name or "")[1].lower()
    out_name = f"{uuid.uuid4().hex}{ext}"
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    with open(os.path.join(settings.UPLOAD_DIR, out_name), "wb") as f:
        f.write(content)
    return f"{os.path.basename(os.path.normpath(settings.UPLOAD_DIR))}/{out_name}"


def attach_image(db: Session, principal: Principal, task_id: int, content: bytes, original_name: str) -> TaskImage:
    task = guard_task(db, principal, task_id, BOARD_ROLES)
    check_image(content)

    file_path = store_upload(content, original_name)
    image = TaskImage(task_id=task.id, file_path=file_path, original_file_name=original_name)
    db.add(image)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        # pas de fichier orphelin si la ligne n'existe pas
        os.remove(upload_path(file_path))
        raise
    db.refresh(image)
    logger.info("user %s attached image %s to card %s", principal.user_id, image.id, task.id)
    return image
