"""Projects and their membership edges."""

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from taskboard.core.exceptions import ConflictError, NotFoundError, ValidationFailure
from taskboard.models.project import Project, ProjectMember
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.services.access_service import MANAGE_ROLES, VIEW_ROLES, Principal, guard_project
from taskboard.services.ordering_service import project_lock, release_project_lock

logger = logging.getLogger(__name__)


def list_projects(db: Session, principal: Principal) -> List[Project]:
    query = db.query(Project)
    if not principal.is_admin:
        member_of = db.query(ProjectMember.project_id).filter(ProjectMember.user_id == principal.user_id)
        query = query.filter(or_(
            Project.organizer_id == principal.user_id,
            Project.id.in_(member_of)
        ))
    return query.order_by(Project.created_at.desc(), Project.id.desc()).all()


def create_project(db: Session, principal: Principal, title: str, description: Optional[str] = None) -> Project:
    title = (title or "").strip()
    if not title:
        raise ValidationFailure("Title is required", field="title")

    project = Project(
        title=title,
        description=(description or "").strip() or None,
        organizer_id=principal.user_id
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("user %s created project %s", principal.user_id, project.id)
    return project


def get_project(db: Session, principal: Principal, project_id: int) -> Project:
    return guard_project(db, principal, project_id, VIEW_ROLES)


def update_project(db: Session, principal: Principal, project_id: int,
                   title: Optional[str] = None, description: Optional[str] = None) -> Project:
    project = guard_project(db, principal, project_id, MANAGE_ROLES)

    if title is not None:
        if not title.strip():
            raise ValidationFailure("Title is required", field="title")
        project.title = title.strip()
    if description is not None:
        project.description = description.strip() or None

    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, principal: Principal, project_id: int) -> None:
    """Delete a project with its columns, cards, labels, images and memberships."""
    project = guard_project(db, principal, project_id, MANAGE_ROLES)
    with project_lock(project.id):
        db.delete(project)
        db.commit()
    release_project_lock(project_id)
    logger.info("user %s deleted project %s", principal.user_id, project_id)


def list_members(db: Session, principal: Principal, project_id: int) -> List[ProjectMember]:
    project = guard_project(db, principal, project_id, VIEW_ROLES)
    return sorted(project.members, key=lambda m: (m.joined_at, m.user_id))


def add_member(db: Session, principal: Principal, project_id: int, email: str) -> ProjectMember:
    project = guard_project(db, principal, project_id, MANAGE_ROLES)

    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if user is None:
        raise NotFoundError("User", email)
    if user.id == project.organizer_id:
        raise ConflictError(f"{user.email} is the organizer of this project")
    if user.id in project.member_ids():
        raise ConflictError(f"{user.email} is already a member")

    membership = ProjectMember(project_id=project.id, user_id=user.id)
    db.add(membership)
    db.commit()
    db.refresh(membership)
    logger.info("user %s added %s to project %s", principal.user_id, user.id, project.id)
    return membership


def remove_member(db: Session, principal: Principal, project_id: int, user_id: int) -> None:
    """Drop a membership edge; the leaving member's cards become unassigned."""
    project = guard_project(db, principal, project_id, MANAGE_ROLES)

    if user_id == principal.user_id:
        raise ValidationFailure("You cannot remove yourself from the project")

    membership = db.query(ProjectMember).filter(
        ProjectMember.project_id == project.id,
        ProjectMember.user_id == user_id
    ).first()
    if membership is None:
        raise NotFoundError("Member", user_id)

    db.query(Task).filter(
        Task.project_id == project.id,
        Task.assigned_to_user_id == user_id
    ).update({Task.assigned_to_user_id: None}, synchronize_session=False)
    db.delete(membership)
    db.commit()
    logger.info("user %s removed %s from project %s", principal.user_id, user_id, project.id)
