"""
Project Model Module

This module defines the Project model: a unit of work owned by one user and
carried out for one of that user's clients.
"""
from typing import Any, Dict
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, JSON, Column

from app.models.base import SoftDeleteFields, TimestampFields, new_id


class ProjectBase(SQLModel):
    """
    Base properties for a Project.

    Attributes:
        name: Project name
        project_code: Owner-chosen identifier, unique per owner
        code: Internal code
        begin: Start date as entered, DD-MM-YYYY
        end: End date as entered, DD-MM-YYYY
        notes: Free text
    """
    name: str = Field(nullable=False)
    project_code: str = Field(nullable=False, index=True)
    code: str = Field(nullable=False)

    # Dates stored as display strings, validated at the API boundary
    begin: str = Field(nullable=False)
    end: str = Field(nullable=False)

    notes: str = Field(nullable=False)


class Project(ProjectBase, SoftDeleteFields, TimestampFields, table=True):
    """
    Project table model.
    """
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("user_id", "project_code", name="uq_projects_user_code"),)

    id: str = Field(default_factory=new_id, primary_key=True)

    # street, number, postal, city, province
    address: Dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))

    # Relationships
    user_id: str = Field(foreign_key="users.id", index=True)
    client_id: str = Field(foreign_key="clients.id", index=True)


class ProjectRead(ProjectBase):
    id: str
    address: Dict[str, Any]
    user_id: str
    client_id: str
    created_at: str
    updated_at: str
