"""
Client Model Module

This module defines the Client model representing the customers a user
bills work to. Clients are owned by exactly one user.
"""
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from app.models.base import SoftDeleteFields, TimestampFields, new_id


class ClientBase(SQLModel):
    name: str = Field(nullable=False)
    address: str = Field(nullable=False)
    email: str = Field(nullable=False, index=True)


class Client(ClientBase, SoftDeleteFields, TimestampFields, table=True):
    """
    Client table model.

    Email uniqueness is scoped to the owning user, so two tenants may both
    keep a client with the same address. Soft-deleted rows still count.
    """
    __tablename__ = "clients"
    __table_args__ = (UniqueConstraint("user_id", "email", name="uq_clients_user_email"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)


class ClientRead(ClientBase):
    id: str
    user_id: str
    created_at: str
    updated_at: str
