"""
Pytest configuration and fixtures for the delivery notes API tests.
"""

import hashlib
import os
import shutil
import tempfile
from typing import Callable, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing the app
_DB_DIR = tempfile.mkdtemp(prefix="albaranes_test_db_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-12345"
os.environ["API_PREFIX"] = ""
os.environ["PINATA_GATEWAY_URL"] = "gateway.test"
os.environ.pop("PINATA_JWT", None)
os.environ.pop("SMTP_HOST", None)

from sqlmodel import Session, SQLModel

from app.main import app
from app.api import deps
from app.core.config import settings
from app.core.security import create_access_token, get_password_hash
from app.db.session import engine, init_db
from app.models.user import User, UserRole
from app.services.storage import UploadError, UploadResult, gateway_url

TEST_PASSWORD = "s3cret-pass"


class FakeUploader:
    """In-memory stand-in for the Pinata uploader.

    Content hashes are derived from the bytes, so the same data always maps to
    the same URL. ``fail_on_call`` makes the n-th upload (1-based) fail.
    ``on_upload`` is called with the blob name after each stored upload.
    """

    def __init__(self):
        self.uploads: List[Tuple[str, bytes]] = []
        self.fail_on_call: Optional[int] = None
        self.calls = 0
        self.on_upload: Optional[Callable[[str], None]] = None

    def upload(self, data: bytes, name: str) -> UploadResult:
        self.calls += 1
        if self.fail_on_call is not None and self.calls >= self.fail_on_call:
            raise UploadError(f"upload of {name} failed")
        self.uploads.append((name, data))
        if self.on_upload is not None:
            self.on_upload(name)
        content_hash = "Qm" + hashlib.sha256(data).hexdigest()[:32]
        return UploadResult(
            content_hash=content_hash,
            gateway_url=gateway_url(settings.PINATA_GATEWAY_URL, content_hash),
        )


class FakeMailer:
    """Collects outgoing mail instead of sending it."""

    def __init__(self):
        self.outbox: List[dict] = []
        self.codes = {}

    def send(self, to: str, subject: str, body: str) -> bool:
        self.outbox.append({"to": to, "subject": subject, "body": body})
        return True

    def send_verification_code(self, to: str, code: str) -> bool:
        self.codes[to] = code
        return self.send(to, "Verify your email", code)

    def send_invitation(self, to: str, inviter: str, password: str, code: str) -> bool:
        self.codes[to] = code
        return self.send(to, "You have been invited", f"{inviter} {password} {code}")


@pytest.fixture(scope="session", autouse=True)
def test_db_dir():
    """Remove the temporary database directory after the run."""
    yield _DB_DIR
    engine.dispose()
    shutil.rmtree(_DB_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_db():
    """Start every test from empty tables."""
    SQLModel.metadata.drop_all(engine)
    init_db()
    yield


@pytest.fixture
def uploader():
    fake = FakeUploader()
    app.dependency_overrides[deps.get_uploader] = lambda: fake
    yield fake
    app.dependency_overrides.pop(deps.get_uploader, None)


@pytest.fixture
def mailer():
    fake = FakeMailer()
    app.dependency_overrides[deps.get_mailer] = lambda: fake
    yield fake
    app.dependency_overrides.pop(deps.get_mailer, None)


@pytest.fixture
def client(uploader, mailer):
    """Create a test client for the FastAPI app with fake collaborators."""
    return TestClient(app)


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(db):
    """Factory for verified users stored directly in the database."""

    def _make_user(email: str = "owner@example.com", role: UserRole = UserRole.USER, **attrs) -> User:
        user = User(
            email=email,
            password=get_password_hash(TEST_PASSWORD),
            role=role,
            verified=True,
            **attrs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def auth_header(user: User) -> dict:
    token = create_access_token(user.id, settings, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def headers(user):
    """Bearer headers of the default user."""
    return auth_header(user)


@pytest.fixture
def other_headers(make_user):
    """Bearer headers of a second, unrelated tenant."""
    return auth_header(make_user("other@example.com"))


CLIENT_PAYLOAD = {
    "name": "Construcciones Lopez",
    "address": "Calle Mayor 1, Madrid",
    "email": "contact@lopez.example.com",
}

PROJECT_PAYLOAD = {
    "name": "Office refurbishment",
    "projectCode": "PRJ-001",
    "code": "INT-42",
    "address": {
        "street": "Gran Via",
        "number": 12,
        "postal": 28013,
        "city": "Madrid",
        "province": "Madrid",
    },
    "begin": "01-03-2025",
    "end": "30-06-2025",
    "notes": "Second floor",
}


def create_client(client: TestClient, headers: dict, **overrides) -> dict:
    response = client.post("/client", json={**CLIENT_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_project(client: TestClient, headers: dict, client_id: str, **overrides) -> dict:
    payload = {**PROJECT_PAYLOAD, "clientId": client_id, **overrides}
    response = client.post("/projects", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_delivery_note(client: TestClient, headers: dict, client_id: str, project_id: str, **overrides) -> dict:
    payload = {
        "clientId": client_id,
        "projectId": project_id,
        "format": "hours",
        "hours": 7.5,
        "description": "Installed ceiling panels",
        **overrides,
    }
    response = client.post("/deliverynotes", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def client_record(client, headers):
    return create_client(client, headers)


@pytest.fixture
def project_record(client, headers, client_record):
    return create_project(client, headers, client_record["id"])


@pytest.fixture
def note_record(client, headers, client_record, project_record):
    return create_delivery_note(client, headers, client_record["id"], project_record["id"])
