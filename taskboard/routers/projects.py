"""
Router projets: CRUD, membres et insights.

Endpoints:
- GET/POST /projects
- GET/PUT/DELETE /projects/{project_id}
- GET/POST /projects/{project_id}/members, DELETE /projects/{project_id}/members/{user_id}
- GET/POST /projects/{project_id}/insights
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from taskboard.core.database import get_db
from taskboard.core.deps import get_principal
from taskboard.schemas.project import (
    InsightsResponse,
    MemberAdd,
    MemberResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
)
from taskboard.services import insights_service, project_service
from taskboard.services.access_service import Principal

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=List[ProjectResponse])
def list_projects(db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return project_service.list_projects(db, principal)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    return project_service.create_project(db, principal, project_data.title, project_data.description)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return project_service.get_project(db, principal, project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    project_data: ProjectUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    return project_service.update_project(
        db, principal, project_id,
        title=project_data.title,
        description=project_data.description
    )


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    project_service.delete_project(db, principal, project_id)


#MEMBRES

@router.get("/{project_id}/members", response_model=List[MemberResponse])
def list_members(project_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    return project_service.list_members(db, principal, project_id)


@router.post("/{project_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    project_id: int,
    member: MemberAdd,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    return project_service.add_member(db, principal, project_id, member.email)


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    project_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    project_service.remove_member(db, principal, project_id, user_id)


#INSIGHTS

@router.get("/{project_id}/insights", response_model=InsightsResponse)
def get_insights(project_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    """Résumé mis en cache (null si jamais généré)"""
    project = insights_service.get_cached_insights(db, principal, project_id)
    return InsightsResponse(project_id=project.id, summary=project.ai_summary, generated_at=project.ai_summary_date)


@router.post("/{project_id}/insights", response_model=InsightsResponse)
def generate_insights(project_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)):
    """Régénère le résumé du board via Gemini et le met en cache sur le projet"""
    project = insights_service.generate_insights(db, principal, project_id)
    return InsightsResponse(project_id=project.id, summary=project.ai_summary, generated_at=project.ai_summary_date)
