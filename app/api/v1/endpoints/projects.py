"""
Project Endpoints Module

This module provides CRUD endpoints for managing projects. Projects belong to
the authenticated user and point at one of that user's clients.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from app.api import deps
from app.db.repository import Repository
from app.db.session import get_db
from app.models.client import Client
from app.models.delivery_note import DeliveryNote
from app.models.project import Project, ProjectRead
from app.models.user import User
from app.schemas.project import ProjectCreate, ProjectUpdate, check_date_order

router = APIRouter()


def _require_client(db: Session, client_id: str, owner_id: str) -> Client:
    client = Repository(Client, db).find_by_id(client_id, owner_id=owner_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Create a new project.

    Args:
        project_in: Validated project data (dates already checked)
        db: Database session
        current_user: Currently authenticated user

    Returns:
        Project: The newly created project

    Raises:
        HTTPException 404: clientId does not match an active client of the user
        HTTPException 409: The user already has a project with this projectCode
    """
    _require_client(db, project_in.client_id, current_user.id)

    projects = Repository(Project, db)
    if projects.find_one(owner_id=current_user.id, include_deleted=True, project_code=project_in.project_code):
        raise HTTPException(status_code=409, detail="Project already exists")

    return projects.create(**project_in.model_dump(), user_id=current_user.id)


@router.get("", response_model=List[ProjectRead])
def list_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Retrieve the current user's active projects.
    """
    return Repository(Project, db).find(owner_id=current_user.id)


@router.get("/{project_id}", response_model=ProjectRead)
def read_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    project = Repository(Project, db).find_by_id(project_id, owner_id=current_user.id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.put("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: str,
    project_in: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Update an existing project. Only provided fields change.

    The begin/end ordering is checked against the stored value of whichever
    date the request leaves out.

    Raises:
        HTTPException 404: Unknown project, or unknown clientId
        HTTPException 409: projectCode already used by another of the user's projects
        HTTPException 422: The merged dates are out of order
    """
    projects = Repository(Project, db)
    project = projects.find_by_id(project_id, owner_id=current_user.id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    update_data = project_in.model_dump(exclude_unset=True, exclude_none=True)

    try:
        check_date_order(update_data.get("begin", project.begin), update_data.get("end", project.end))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    if "client_id" in update_data:
        _require_client(db, update_data["client_id"], current_user.id)

    if "project_code" in update_data:
        clash = projects.find_one(
            owner_id=current_user.id, include_deleted=True, project_code=update_data["project_code"]
        )
        if clash and clash.id != project_id:
            raise HTTPException(status_code=409, detail="Project already exists")

    return projects.update_one(project_id, update_data, owner_id=current_user.id)


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    soft: bool = Depends(deps.soft_delete_flag),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Archive (default) or permanently delete a project. A permanent delete
    also removes the project's delivery notes.
    """
    projects = Repository(Project, db)
    if soft:
        if not projects.mark_deleted(project_id, owner_id=current_user.id):
            raise HTTPException(status_code=404, detail="Project not found")
        return {"message": "Project archived"}

    if not projects.purge(
        project_id, owner_id=current_user.id, dependents=[(DeliveryNote, DeliveryNote.project_id == project_id)]
    ):
        raise HTTPException(status_code=404, detail="Project not found")
    return {"message": "Project permanently deleted"}


@router.patch("/restore/{project_id}")
def restore_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    if not Repository(Project, db).restore(project_id, owner_id=current_user.id):
        raise HTTPException(status_code=404, detail="Project not found or not deleted")
    return {"message": "Project restored"}
