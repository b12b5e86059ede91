from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.client import ClientRead
from app.models.delivery_note import DeliveryNoteFormat, DeliveryNoteRead
from app.models.project import ProjectRead
from app.schemas.user import UserRead


class DeliveryNoteCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client_id: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    format: DeliveryNoteFormat
    material: str = Field(default="N/A", min_length=1)
    hours: float = Field(default=0, ge=0)
    description: str = Field(min_length=1)


class DeliveryNoteReadWithRelations(DeliveryNoteRead):
    """Delivery note with its project, client and issuing user resolved."""
    project: Optional[ProjectRead] = None
    client: Optional[ClientRead] = None
    user: Optional[UserRead] = None


class SignResult(BaseModel):
    signatureUrl: str
    pdfUrl: str


class SignResponse(BaseModel):
    message: str
    data: SignResult
