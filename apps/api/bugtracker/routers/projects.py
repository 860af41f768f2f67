"""Projects router - project CRUD and team membership."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bugtracker.core.deps import get_current_user, get_db
from bugtracker.db.models import User
from bugtracker.schemas.project import (
    MemberChange,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
)
from bugtracker.services import project_service


router = APIRouter()


@router.post("/", response_model=ProjectRead, status_code=201)
def create_project(
    data: ProjectCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = project_service.create_project(db, user, data)
    return project_service.to_project_read(project)


@router.get("/", response_model=list[ProjectRead])
def list_projects(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Projects the caller owns or belongs to."""
    projects = project_service.list_projects(db, user)
    return [project_service.to_project_read(p) for p in projects]


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = project_service.get_project(db, project_id, user)
    return project_service.to_project_read(project)


@router.put("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: str,
    data: ProjectUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update a project (owner only)."""
    project = project_service.update_project(db, project_id, user, data)
    return project_service.to_project_read(project)


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a project with its tickets and comments (owner only)."""
    project_service.delete_project(db, project_id, user)
    return {"message": "Project removed"}


@router.put("/{project_id}/add-member", response_model=ProjectRead)
def add_member(
    project_id: str,
    data: MemberChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = project_service.add_member(db, project_id, user, data.user_id)
    return project_service.to_project_read(project)


@router.put("/{project_id}/remove-member", response_model=ProjectRead)
def remove_member(
    project_id: str,
    data: MemberChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = project_service.remove_member(db, project_id, user, data.user_id)
    return project_service.to_project_read(project)
