"""
Delivery Note Model Module

A delivery note records the hours worked or materials supplied against a
project for a client. Notes are created unsigned and become signed once a
signature image and the rendered PDF are stored remotely.
"""
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field

from app.models.base import SoftDeleteFields, TimestampFields, new_id


class DeliveryNoteFormat(str, Enum):
    HOURS = "hours"
    MATERIALS = "materials"


class DeliveryNoteBase(SQLModel):
    format: DeliveryNoteFormat
    material: str = Field(default="N/A")
    hours: float = Field(default=0)
    description: str = Field(nullable=False)


class DeliveryNote(DeliveryNoteBase, SoftDeleteFields, TimestampFields, table=True):
    """
    Delivery note table model.

    Attributes:
        sign: Gateway URL of the uploaded signature image
        pdf_url: Gateway URL of the signed PDF
        signed: Set once by the signing workflow
    """
    __tablename__ = "delivery_notes"

    id: str = Field(default_factory=new_id, primary_key=True)

    user_id: str = Field(foreign_key="users.id", index=True)
    client_id: str = Field(foreign_key="clients.id", index=True)
    project_id: str = Field(foreign_key="projects.id", index=True)

    sign: Optional[str] = None
    pdf_url: Optional[str] = None
    signed: bool = False


class DeliveryNoteRead(DeliveryNoteBase):
    id: str
    user_id: str
    client_id: str
    project_id: str
    sign: Optional[str] = None
    pdf_url: Optional[str] = None
    signed: bool
    created_at: str
    updated_at: str

