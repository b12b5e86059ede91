"""
Tests for the delivery note endpoints: creation, reads, PDF download,
signing and lifecycle.
"""

from sqlmodel import Session

from app.db.session import engine
from app.models.delivery_note import DeliveryNote
from conftest import create_client, create_delivery_note, create_project

SIGNATURE = ("signature.png", b"\x89PNG\r\n\x1a\nfake-signature", "image/png")


def sign(client, headers, note_id):
    return client.post(
        "/deliverynotes/sign",
        data={"deliveryNoteId": note_id},
        files={"signature": SIGNATURE},
        headers=headers,
    )


def stored_note(note_id):
    with Session(engine) as session:
        return session.get(DeliveryNote, note_id)


class TestCreateDeliveryNote:
    """Tests for POST /deliverynotes."""

    def test_create_hours(self, client, headers, note_record, project_record):
        assert note_record["format"] == "hours"
        assert note_record["hours"] == 7.5
        assert note_record["material"] == "N/A"
        assert note_record["signed"] is False
        assert note_record["sign"] is None
        assert note_record["project_id"] == project_record["id"]

    def test_create_materials(self, client, headers, client_record, project_record):
        note = create_delivery_note(
            client, headers, client_record["id"], project_record["id"],
            format="materials", material="Plasterboard", hours=0,
        )
        assert note["material"] == "Plasterboard"

    def test_project_of_other_client(self, client, headers, client_record, project_record):
        """The project must belong to the given client."""
        second = create_client(client, headers, email="second@example.com")

        response = client.post(
            "/deliverynotes",
            json={
                "clientId": second["id"],
                "projectId": project_record["id"],
                "format": "hours",
                "hours": 2,
                "description": "Wrong client",
            },
            headers=headers,
        )
        assert response.status_code == 400

    def test_unknown_project(self, client, headers, client_record):
        response = client.post(
            "/deliverynotes",
            json={"clientId": client_record["id"], "projectId": "missing", "format": "hours", "description": "x"},
            headers=headers,
        )
        assert response.status_code == 404

    def test_invalid_format(self, client, headers, client_record, project_record):
        response = client.post(
            "/deliverynotes",
            json={
                "clientId": client_record["id"],
                "projectId": project_record["id"],
                "format": "days",
                "description": "x",
            },
            headers=headers,
        )
        assert response.status_code == 422

    def test_missing_description(self, client, headers, client_record, project_record):
        response = client.post(
            "/deliverynotes",
            json={"clientId": client_record["id"], "projectId": project_record["id"], "format": "hours"},
            headers=headers,
        )
        assert response.status_code == 422


class TestReadDeliveryNote:
    """Tests for GET /deliverynotes and GET /deliverynotes/{id}."""

    def test_read_with_relations(self, client, headers, note_record, project_record, client_record, user):
        response = client.get(f"/deliverynotes/{note_record['id']}", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["project"]["name"] == project_record["name"]
        assert data["client"]["name"] == client_record["name"]
        assert data["user"]["email"] == user.email
        assert "password" not in data["user"]

    def test_list(self, client, headers, other_headers, note_record):
        assert len(client.get("/deliverynotes", headers=headers).json()) == 1
        assert client.get("/deliverynotes", headers=other_headers).json() == []

    def test_foreign_note(self, client, other_headers, note_record):
        response = client.get(f"/deliverynotes/{note_record['id']}", headers=other_headers)
        assert response.status_code == 404


class TestPdfDownload:
    """Tests for GET /deliverynotes/pdf/{id}."""

    def test_download(self, client, headers, note_record):
        note_id = note_record["id"]

        response = client.get(f"/deliverynotes/pdf/{note_id}", headers=headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == f"attachment; filename=albaran_{note_id}.pdf"
        assert response.content.startswith(b"%PDF")
        assert b"Installed ceiling panels" in response.content

    def test_unknown_note(self, client, headers):
        response = client.get("/deliverynotes/pdf/missing", headers=headers)
        assert response.status_code == 404

    def test_archived_project_still_renders(self, client, headers, note_record, project_record):
        client.delete(f"/projects/{project_record['id']}", headers=headers)

        response = client.get(f"/deliverynotes/pdf/{note_record['id']}", headers=headers)
        assert response.status_code == 200

    def test_purged_project(self, client, headers, note_record, project_record):
        """Purging the project takes its notes along, so the PDF is gone too."""
        client.delete(f"/projects/{project_record['id']}?soft=false", headers=headers)

        response = client.get(f"/deliverynotes/pdf/{note_record['id']}", headers=headers)
        assert response.status_code == 404
        assert stored_note(note_record["id"]) is None


class TestSignDeliveryNote:
    """Tests for POST /deliverynotes/sign."""

    def test_sign(self, client, headers, note_record, uploader):
        note_id = note_record["id"]

        response = sign(client, headers, note_id)

        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["signatureUrl"].startswith("https://gateway.test/ipfs/")
        assert data["pdfUrl"].startswith("https://gateway.test/ipfs/")

        # Signature first, then the PDF
        assert [name for name, _ in uploader.uploads] == ["signature.png", f"albaran_{note_id}.pdf"]
        assert uploader.uploads[1][1].startswith(b"%PDF")

        note = stored_note(note_id)
        assert note.signed is True
        assert note.sign == data["signatureUrl"]
        assert note.pdf_url == data["pdfUrl"]

    def test_sign_twice(self, client, headers, note_record, uploader):
        """Signing is one-shot and the second attempt uploads nothing."""
        assert sign(client, headers, note_record["id"]).status_code == 200
        uploads_after_first = len(uploader.uploads)

        response = sign(client, headers, note_record["id"])

        assert response.status_code == 409
        assert len(uploader.uploads) == uploads_after_first

    def test_pdf_upload_failure_leaves_note_unsigned(self, client, headers, note_record, uploader):
        uploader.fail_on_call = 2

        response = sign(client, headers, note_record["id"])

        assert response.status_code == 500
        assert response.text == "ERROR_SIGNING_DELIVERY_NOTE"
        # The signature blob is orphaned remotely
        assert len(uploader.uploads) == 1

        note = stored_note(note_record["id"])
        assert note.signed is False
        assert note.sign is None
        assert note.pdf_url is None

    def test_retry_after_failure(self, client, headers, note_record, uploader):
        uploader.fail_on_call = 1
        assert sign(client, headers, note_record["id"]).status_code == 500

        uploader.fail_on_call = None
        assert sign(client, headers, note_record["id"]).status_code == 200

    def test_unknown_note(self, client, headers, uploader):
        response = sign(client, headers, "missing")

        assert response.status_code == 404
        assert uploader.uploads == []

    def test_missing_signature_file(self, client, headers, note_record):
        response = client.post(
            "/deliverynotes/sign", data={"deliveryNoteId": note_record["id"]}, headers=headers
        )
        assert response.status_code == 422

    def test_signed_pdf_download_shows_signature(self, client, headers, note_record):
        signature_url = sign(client, headers, note_record["id"]).json()["data"]["signatureUrl"]

        response = client.get(f"/deliverynotes/pdf/{note_record['id']}", headers=headers)
        assert signature_url.encode() in response.content


class TestDeleteAndRestore:
    """Tests for the delivery note lifecycle endpoints."""

    def test_soft_delete_and_restore(self, client, headers, note_record):
        note_id = note_record["id"]

        assert client.delete(f"/deliverynotes/{note_id}", headers=headers).status_code == 200
        assert client.get(f"/deliverynotes/{note_id}", headers=headers).status_code == 404

        assert client.patch(f"/deliverynotes/restore/{note_id}", headers=headers).status_code == 200
        assert client.get(f"/deliverynotes/{note_id}", headers=headers).status_code == 200

    def test_hard_delete_signed_note(self, client, headers, note_record):
        note_id = note_record["id"]
        sign(client, headers, note_id)

        response = client.delete(f"/deliverynotes/{note_id}?soft=false", headers=headers)

        assert response.status_code == 200
        assert stored_note(note_id) is None

    def test_restore_active(self, client, headers, note_record):
        response = client.patch(f"/deliverynotes/restore/{note_record['id']}", headers=headers)
        assert response.status_code == 404
