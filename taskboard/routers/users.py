"""
Router utilisateurs: profil courant + administration (rôle Admin requis).
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, selectinload
from typing import List
import logging

from taskboard.core.database import get_db
from taskboard.core.deps import get_current_user, require_admin
from taskboard.core.exceptions import ConflictError, NotFoundError
from taskboard.models.user import User
from taskboard.schemas.user import RoleUpdate, UserAdminView, UserResponse
from taskboard.services.access_service import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("", response_model=List[UserAdminView])
def list_users(db: Session = Depends(get_db), admin: Principal = Depends(require_admin)):
    """Liste des utilisateurs avec leurs compteurs projets / tâches"""
    users = db.query(User).options(
        selectinload(User.owned_projects),
        selectinload(User.memberships),
        selectinload(User.assigned_tasks)
    ).order_by(User.id).all()

    result = []
    for user in users:
        project_ids = {p.id for p in user.owned_projects} | {m.project_id for m in user.memberships}
        view = UserAdminView(
            **UserResponse.model_validate(user).model_dump(),
            projects_count=len(project_ids),
            tasks_count=len(user.assigned_tasks)
        )
        result.append(view)
    return result


@router.put("/{user_id}/role", response_model=UserResponse)
def change_role(
    user_id: int,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User", user_id)
    if user.id == admin.user_id and data.role != user.role:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")

    user.role = data.role
    db.commit()
    db.refresh(user)
    logger.info("admin %s set role of user %s to %s", admin.user_id, user.id, user.role.value)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, db: Session = Depends(get_db), admin: Principal = Depends(require_admin)):
    """Supprime un utilisateur: ses tâches assignées repassent à null"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User", user_id)
    if user.owned_projects:
        raise ConflictError("This user still organizes projects; delete or hand them over first")

    db.delete(user)
    db.commit()
    logger.info("admin %s deleted user %s", admin.user_id, user_id)
