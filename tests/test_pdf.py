"""
Tests for delivery note PDF rendering.
"""

import re

from app.models.client import Client
from app.models.delivery_note import DeliveryNote, DeliveryNoteFormat
from app.models.project import Project
from app.models.user import User
from app.services.pdf import delivery_note_lines, render_delivery_note


def make_note(**attrs):
    defaults = dict(
        id="note-1",
        user_id="user-1",
        client_id="client-1",
        project_id="project-1",
        format=DeliveryNoteFormat.HOURS,
        hours=8,
        description="Painted the north wall",
        created_at="2025-04-02T10:15:00+00:00",
    )
    defaults.update(attrs)
    return DeliveryNote(**defaults)


PROJECT = Project(
    id="project-1",
    name="Warehouse",
    project_code="WH-1",
    code="INT-1",
    begin="01-04-2025",
    end="30-04-2025",
    notes="",
    address={"street": "Calle Sol", "number": 3, "postal": 41001, "city": "Sevilla", "province": "Sevilla"},
    user_id="user-1",
    client_id="client-1",
)
CLIENT = Client(id="client-1", name="Almacenes Sur", address="Calle Luna 9", email="sur@example.com", user_id="user-1")


class TestDeliveryNoteLines:
    """Tests for the document body."""

    def test_hours_note(self):
        lines = delivery_note_lines(make_note(), CLIENT)

        assert lines == [
            "Client: Almacenes Sur",
            "Date: 2025-04-02",
            "Description: Painted the north wall",
            "Hours worked: 8",
        ]

    def test_materials_note(self):
        note = make_note(format=DeliveryNoteFormat.MATERIALS, material="20 bags of cement")

        lines = delivery_note_lines(note, CLIENT)

        assert "Material used: 20 bags of cement" in lines
        assert not any(line.startswith("Hours worked") for line in lines)

    def test_signature_and_company(self):
        user = User(
            id="user-1",
            email="owner@example.com",
            password="x",
            company={"name": "Reformas Garcia SL", "cif": "B12345678"},
        )
        note = make_note(sign="https://gateway.test/ipfs/QmSig")

        lines = delivery_note_lines(note, CLIENT, user)

        assert lines[1] == "Issued by: Reformas Garcia SL (B12345678)"
        assert lines[-1] == "Signature: https://gateway.test/ipfs/QmSig"


class TestRenderDeliveryNote:
    """Tests for the rendered PDF bytes."""

    def test_contains_text(self):
        pdf = render_delivery_note(make_note(hours=7.5), PROJECT, CLIENT)

        assert pdf.startswith(b"%PDF")
        assert b"Delivery note for project: Warehouse" in pdf
        assert b"Painted the north wall" in pdf
        assert b"Hours worked: 7.5" in pdf

    def test_deterministic(self):
        note = make_note()
        assert render_delivery_note(note, PROJECT, CLIENT) == render_delivery_note(note, PROJECT, CLIENT)

    def test_long_description_spans_pages(self):
        description = " ".join(["word"] * 3000)

        pdf = render_delivery_note(make_note(description=description), PROJECT, CLIENT)

        page_counts = [int(n) for n in re.findall(rb"/Count (\d+)", pdf)]
        assert max(page_counts) >= 2
