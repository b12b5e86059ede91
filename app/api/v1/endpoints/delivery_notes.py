"""
Delivery Note Endpoints Module

Create, list, render, sign and delete delivery notes. Notes are scoped to the
authenticated user. Signing uploads the signature image and the rendered PDF
to remote storage and records both gateway URLs on the note.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import Response
from sqlmodel import Session
from app.api import deps
from app.core.errors import HttpError
from app.db.repository import Repository
from app.db.session import get_db
from app.models.client import Client
from app.models.delivery_note import DeliveryNote, DeliveryNoteRead
from app.models.project import Project
from app.models.user import User
from app.schemas.delivery_note import (
    DeliveryNoteCreate,
    DeliveryNoteReadWithRelations,
    SignResponse,
    SignResult,
)
from app.services import signing
from app.services.storage import BlobUploader, UploadError

logger = logging.getLogger(__name__)

router = APIRouter()


def _with_relations(context: signing.DeliveryNoteContext) -> DeliveryNoteReadWithRelations:
    return DeliveryNoteReadWithRelations.model_validate({
        **context.note.model_dump(),
        "project": context.project.model_dump() if context.project else None,
        "client": context.client.model_dump() if context.client else None,
        "user": context.user.model_dump() if context.user else None,
    })


@router.post("", response_model=DeliveryNoteRead, status_code=status.HTTP_201_CREATED)
def create_delivery_note(
    note_in: DeliveryNoteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Create an unsigned delivery note.

    Raises:
        HTTPException 404: The project or client is not an active record of the user
        HTTPException 400: The project belongs to a different client
    """
    project = Repository(Project, db).find_by_id(note_in.project_id, owner_id=current_user.id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    client = Repository(Client, db).find_by_id(note_in.client_id, owner_id=current_user.id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    if project.client_id != client.id:
        raise HTTPException(status_code=400, detail="Project does not belong to the given client")

    return Repository(DeliveryNote, db).create(**note_in.model_dump(), user_id=current_user.id)


@router.get("", response_model=List[DeliveryNoteReadWithRelations])
def list_delivery_notes(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    notes = Repository(DeliveryNote, db).find(owner_id=current_user.id)
    return [_with_relations(signing.resolve_relations(db, note)) for note in notes]


@router.get("/pdf/{note_id}")
def download_delivery_note_pdf(
    note_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Render a delivery note as a PDF attachment named ``albaran_<id>.pdf``.
    """
    try:
        context = signing.load_delivery_note(db, note_id, current_user.id)
        pdf = signing.render_pdf(context)
    except signing.DeliveryNoteNotFound:
        raise HTTPException(status_code=404, detail="Delivery note not found")
    except signing.RelatedRecordMissing:
        raise HTTPException(status_code=404, detail="Project or client not found")

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={signing.pdf_filename(note_id)}"},
    )


@router.post("/sign", response_model=SignResponse)
def sign_delivery_note(
    delivery_note_id: str = Form(..., alias="deliveryNoteId"),
    signature: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
    uploader: BlobUploader = Depends(deps.get_uploader),
):
    """
    Sign a delivery note with an uploaded signature image.

    The form carries ``deliveryNoteId`` and the ``signature`` file. A note can
    only be signed once.

    Raises:
        HTTPException 400: Empty signature file
        HTTPException 404: Unknown note, or its project/client is gone
        HTTPException 409: The note is already signed
        HttpError 500 ERROR_SIGNING_DELIVERY_NOTE: A remote upload failed; the
            note stays unsigned
    """
    signature_bytes = signature.file.read()
    if not signature_bytes:
        raise HTTPException(status_code=400, detail="Signature image is empty")

    try:
        note = signing.sign_delivery_note(
            db,
            uploader,
            delivery_note_id,
            current_user.id,
            signature_bytes,
            signature.filename or "signature.png",
        )
    except signing.DeliveryNoteNotFound:
        raise HTTPException(status_code=404, detail="Delivery note not found")
    except signing.RelatedRecordMissing:
        raise HTTPException(status_code=404, detail="Project or client not found")
    except signing.DeliveryNoteAlreadySigned:
        raise HTTPException(status_code=409, detail="Delivery note already signed")
    except UploadError:
        logger.exception("Signing delivery note %s failed", delivery_note_id)
        raise HttpError("ERROR_SIGNING_DELIVERY_NOTE", 500)

    return SignResponse(
        message="Delivery note signed",
        data=SignResult(signatureUrl=note.sign, pdfUrl=note.pdf_url),
    )


@router.get("/{note_id}", response_model=DeliveryNoteReadWithRelations)
def read_delivery_note(
    note_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    try:
        context = signing.load_delivery_note(db, note_id, current_user.id)
    except signing.DeliveryNoteNotFound:
        raise HTTPException(status_code=404, detail="Delivery note not found")
    return _with_relations(context)


@router.delete("/{note_id}")
def delete_delivery_note(
    note_id: str,
    soft: bool = Depends(deps.soft_delete_flag),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Archive (default) or permanently delete a delivery note. Signed notes
    can be deleted too.
    """
    notes = Repository(DeliveryNote, db)
    if soft:
        if not notes.mark_deleted(note_id, owner_id=current_user.id):
            raise HTTPException(status_code=404, detail="Delivery note not found")
        return {"message": "Delivery note archived"}

    if not notes.purge(note_id, owner_id=current_user.id):
        raise HTTPException(status_code=404, detail="Delivery note not found")
    return {"message": "Delivery note permanently deleted"}


@router.patch("/restore/{note_id}")
def restore_delivery_note(
    note_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    if not Repository(DeliveryNote, db).restore(note_id, owner_id=current_user.id):
        raise HTTPException(status_code=404, detail="Delivery note not found or not deleted")
    return {"message": "Delivery note restored"}
