"""
Access control for project boards.

The caller's role on a project is derived on every request from two
explicit facts: the project's organizer id and its membership edges.
Nothing here is cached between requests.
"""

import enum
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable

from sqlalchemy.orm import Session, selectinload

from taskboard.core.exceptions import DeniedError, NotFoundError
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.models.user import User, UserRole

logger = logging.getLogger(__name__)


class ProjectRole(str, enum.Enum):
    ADMIN = "Admin"
    ORGANIZER = "Organizer"
    MEMBER = "Member"
    DENIED = "Denied"


# board reads and card/column mutations
BOARD_ROLES = frozenset({ProjectRole.ADMIN, ProjectRole.ORGANIZER, ProjectRole.MEMBER})
VIEW_ROLES = BOARD_ROLES
# member management, project edit/delete, column delete
MANAGE_ROLES = frozenset({ProjectRole.ADMIN, ProjectRole.ORGANIZER})


@dataclass(frozen=True)
class Principal:
    user_id: int
    roles: FrozenSet[str]

    @property
    def is_admin(self) -> bool:
        return UserRole.ADMIN.value in self.roles

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
        return cls(user_id=user.id, roles=frozenset({role}))


def authorize(principal: Principal, project: Project) -> ProjectRole:
    """Resolve the caller's role: Admin, then Organizer, then Member, else Denied.

    `project.members` must be loaded; membership is read, never inferred.
    """
    if principal.is_admin:
        return ProjectRole.ADMIN
    if project.organizer_id == principal.user_id:
        return ProjectRole.ORGANIZER
    if principal.user_id in project.member_ids():
        return ProjectRole.MEMBER
    return ProjectRole.DENIED


def require_role(principal: Principal, project: Project, allowed: Iterable[ProjectRole]) -> ProjectRole:
    role = authorize(principal, project)
    if role not in allowed:
        logger.warning("user %s denied on project %s (role=%s)", principal.user_id, project.id, role.value)
        raise DeniedError()
    return role


def load_project(db: Session, project_id: int) -> Project:
    project = (
        db.query(Project)
        .options(selectinload(Project.members))
        .filter(Project.id == project_id)
        .first()
    )
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


def guard_project(db: Session, principal: Principal, project_id: int,
                  allowed: Iterable[ProjectRole] = BOARD_ROLES) -> Project:
    """Load the project and check the caller may act on it; returns the project."""
    project = load_project(db, project_id)
    require_role(principal, project, allowed)
    return project


def load_task(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


def guard_task(db: Session, principal: Principal, task_id: int,
               allowed: Iterable[ProjectRole] = BOARD_ROLES) -> Task:
    """Existence first, then the caller's role on the task's project."""
    task = load_task(db, task_id)
    guard_project(db, principal, task.project_id, allowed)
    return task
