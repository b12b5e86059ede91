"""
Delivery note signing workflow.

Signing runs these steps strictly in order:

1. load the note with its project, client and user
2. upload the signature image
3. render the PDF of the (still unsigned) note
4. upload the PDF
5. mark the note signed and store both gateway URLs

Nothing is persisted until step 5, so a failure in steps 2-4 leaves the note
unsigned and referencing no remote artifact. Blobs uploaded before the
failure stay pinned; a retry uploads fresh copies (at-least-once remote
writes). A note that is already signed is rejected before any upload.
Step 5 is a conditional update: of two concurrent signers only one wins,
the other gets ``DeliveryNoteAlreadySigned`` after its uploads.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from app.db.repository import Repository
from app.models.client import Client
from app.models.delivery_note import DeliveryNote
from app.models.project import Project
from app.models.user import User
from app.services.pdf import render_delivery_note
from app.services.storage import BlobUploader

logger = logging.getLogger(__name__)


class DeliveryNoteNotFound(Exception):
    pass


class RelatedRecordMissing(Exception):
    """The note's project or client no longer exists."""


class DeliveryNoteAlreadySigned(Exception):
    pass


@dataclass
class DeliveryNoteContext:
    """A delivery note together with the records it references."""

    note: DeliveryNote
    project: Optional[Project] = None
    client: Optional[Client] = None
    user: Optional[User] = None

    @property
    def complete(self) -> bool:
        return self.project is not None and self.client is not None


def pdf_filename(note_id: str) -> str:
    return f"albaran_{note_id}.pdf"


def resolve_relations(db: Session, note: DeliveryNote) -> DeliveryNoteContext:
    # Archived parents still resolve so historical notes keep rendering
    return DeliveryNoteContext(
        note=note,
        project=Repository(Project, db).find_by_id(note.project_id, include_deleted=True),
        client=Repository(Client, db).find_by_id(note.client_id, include_deleted=True),
        user=Repository(User, db, owner_field=None).find_by_id(note.user_id, include_deleted=True),
    )


def load_delivery_note(db: Session, note_id: str, owner_id: str) -> DeliveryNoteContext:
    note = Repository(DeliveryNote, db).find_by_id(note_id, owner_id=owner_id)
    if note is None:
        raise DeliveryNoteNotFound(note_id)
    return resolve_relations(db, note)


def render_pdf(context: DeliveryNoteContext) -> bytes:
    if not context.complete:
        raise RelatedRecordMissing(context.note.id)
    return render_delivery_note(context.note, context.project, context.client, context.user)


def sign_delivery_note(
    db: Session,
    uploader: BlobUploader,
    note_id: str,
    owner_id: str,
    signature: bytes,
    signature_name: str,
) -> DeliveryNote:
    """
    Sign a delivery note and return it with ``signed``, ``sign`` and
    ``pdf_url`` set.

    Raises:
        DeliveryNoteNotFound: no active note with this id for this owner
        RelatedRecordMissing: the note's project or client is gone
        DeliveryNoteAlreadySigned: the note was signed before, or by a
            concurrent call while this one was uploading
        UploadError: either remote upload failed
    """
    context = load_delivery_note(db, note_id, owner_id)
    note = context.note
    if note.signed:
        raise DeliveryNoteAlreadySigned(note_id)
    if not context.complete:
        raise RelatedRecordMissing(note_id)

    logger.info("Signing delivery note %s: uploading signature", note_id)
    signature_upload = uploader.upload(signature, signature_name)

    logger.info("Signing delivery note %s: rendering and uploading PDF", note_id)
    pdf_upload = uploader.upload(render_pdf(context), pdf_filename(note_id))

    # Only the first writer flips the flag; a concurrent signer finds it set
    signed = Repository(DeliveryNote, db).update_if(
        note_id,
        {"signed": True, "sign": signature_upload.gateway_url, "pdf_url": pdf_upload.gateway_url},
        signed=False,
    )
    if not signed:
        logger.warning("Delivery note %s was signed concurrently; uploads left orphaned", note_id)
        raise DeliveryNoteAlreadySigned(note_id)

    db.refresh(note)
    logger.info("Delivery note %s signed", note_id)
    return note
