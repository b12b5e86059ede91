"""
Client Endpoints Module

CRUD endpoints for the clients of the authenticated user. Every query is
scoped to the caller; a client owned by someone else is reported exactly like
a missing one.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlmodel import Session
from app.api import deps
from app.db.repository import Repository
from app.db.session import get_db
from app.models.client import Client, ClientRead
from app.models.delivery_note import DeliveryNote
from app.models.project import Project
from app.models.user import User
from app.schemas.client import ClientCreate, ClientUpdate

router = APIRouter()


def client_dependents(client_id: str):
    """Rows removed along with a purged client: its notes, then its projects."""
    project_ids = select(Project.id).where(Project.client_id == client_id)
    return [
        (DeliveryNote, or_(DeliveryNote.client_id == client_id, DeliveryNote.project_id.in_(project_ids))),
        (Project, Project.client_id == client_id),
    ]


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_client(
    client_in: ClientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Create a client owned by the current user.

    Raises:
        HTTPException 409: The user already has a client (active or archived)
            with this email
    """
    clients = Repository(Client, db)
    if clients.find_one(owner_id=current_user.id, include_deleted=True, email=client_in.email):
        raise HTTPException(status_code=409, detail="Client already exists")

    return clients.create(**client_in.model_dump(), user_id=current_user.id)


@router.get("", response_model=List[ClientRead])
def list_clients(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    return Repository(Client, db).find(owner_id=current_user.id)


@router.get("/{client_id}", response_model=ClientRead)
def read_client(
    client_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    client = Repository(Client, db).find_by_id(client_id, owner_id=current_user.id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.put("/{client_id}", response_model=ClientRead)
def update_client(
    client_id: str,
    client_in: ClientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Update name, address and/or email of a client. Only provided fields change.

    Raises:
        HTTPException 404: No active client with this id for the user
        HTTPException 409: The new email belongs to another of the user's clients
    """
    clients = Repository(Client, db)
    update_data = client_in.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in update_data:
        clash = clients.find_one(owner_id=current_user.id, include_deleted=True, email=update_data["email"])
        if clash and clash.id != client_id:
            raise HTTPException(status_code=409, detail="Client already exists")

    client = clients.update_one(client_id, update_data, owner_id=current_user.id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.delete("/{client_id}")
def delete_client(
    client_id: str,
    soft: bool = Depends(deps.soft_delete_flag),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Archive (default) or permanently delete a client.

    ``?soft=false`` removes the row for good, together with the client's
    projects and delivery notes; this works on archived clients too.
    """
    clients = Repository(Client, db)
    if soft:
        if not clients.mark_deleted(client_id, owner_id=current_user.id):
            raise HTTPException(status_code=404, detail="Client not found")
        return {"message": "Client archived"}

    if not clients.purge(client_id, owner_id=current_user.id, dependents=client_dependents(client_id)):
        raise HTTPException(status_code=404, detail="Client not found")
    return {"message": "Client permanently deleted"}


@router.patch("/restore/{client_id}")
def restore_client(
    client_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    if not Repository(Client, db).restore(client_id, owner_id=current_user.id):
        raise HTTPException(status_code=404, detail="Client not found or not deleted")
    return {"message": "Client restored"}
