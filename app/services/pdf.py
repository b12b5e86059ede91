"""
Delivery note PDF rendering.

The renderer trusts its inputs: callers must have resolved the project and
client before calling it. Output is written with page compression off and
reportlab's invariant mode, so the same note always renders to the same
bytes and its text can be found in the raw stream.
"""
from io import BytesIO
from typing import List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from app.models.client import Client
from app.models.delivery_note import DeliveryNote, DeliveryNoteFormat
from app.models.project import Project
from app.models.user import User

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 20 * mm
LINE_HEIGHT = 6 * mm
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_SIZE = 12


def format_quantity(value: float) -> str:
    # 10.0 -> "10", 7.5 -> "7.5"
    return f"{value:g}"


def delivery_note_lines(
    note: DeliveryNote,
    client: Client,
    user: Optional[User] = None,
) -> List[str]:
    """Body lines of the document, in print order."""
    lines = [f"Client: {client.name}"]
    if user is not None and user.company:
        lines.append(f"Issued by: {user.company.get('name')} ({user.company.get('cif')})")
    lines.append(f"Date: {note.created_at[:10]}")
    lines.append(f"Description: {note.description}")
    if note.format == DeliveryNoteFormat.HOURS:
        lines.append(f"Hours worked: {format_quantity(note.hours)}")
    else:
        lines.append(f"Material used: {note.material}")
    if note.sign:
        lines.append(f"Signature: {note.sign}")
    return lines


def render_delivery_note(
    note: DeliveryNote,
    project: Project,
    client: Client,
    user: Optional[User] = None,
) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4, pageCompression=0, invariant=1)
    pdf.setTitle(f"albaran_{note.id}")

    y = PAGE_HEIGHT - MARGIN
    pdf.setFont(FONT_BOLD, FONT_SIZE + 2)
    pdf.drawCentredString(PAGE_WIDTH / 2, y, f"Delivery note for project: {project.name}")
    y -= 2 * LINE_HEIGHT

    pdf.setFont(FONT, FONT_SIZE)
    max_width = PAGE_WIDTH - 2 * MARGIN
    for line in delivery_note_lines(note, client, user):
        for chunk in simpleSplit(line, FONT, FONT_SIZE, max_width) or [""]:
            if y < MARGIN:
                pdf.showPage()
                pdf.setFont(FONT, FONT_SIZE)
                y = PAGE_HEIGHT - MARGIN
            pdf.drawString(MARGIN, y, chunk)
            y -= LINE_HEIGHT

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
