"""Shared fixtures: a throwaway SQLite database, auth headers and fake collaborators."""
import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="jewelshop-tests-"))

# Settings are read at import time, so configure before importing the app
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key-for-pytest-only-0123456789"
os.environ["ALLOWED_HOSTS"] = "*"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["CHAT_RATE_LIMIT_PER_MINUTE"] = "10"
os.environ["STORAGE_ROOT"] = str(_TMP / "storage")
os.environ["STORAGE_PUBLIC_BASE_URL"] = "http://testserver"
os.environ["GROQ_API_KEY"] = ""
os.environ["ENVIRONMENT"] = "test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from jewelshop.api import deps  # noqa: E402
from jewelshop.core.rate_limiter import rate_limiter, chat_rate_limiter  # noqa: E402
from jewelshop.core.security import create_access_token  # noqa: E402
from jewelshop.db.base import Base  # noqa: E402
from jewelshop.db.session import SessionLocal, engine  # noqa: E402
from jewelshop.main import app  # noqa: E402
from jewelshop.services.storage_service import LocalBlobStore  # noqa: E402
import jewelshop.models  # noqa: E402,F401

OWNER_ID = "user-owner-0001"
OTHER_ID = "user-other-0002"


# ─── Fakes ────────────────────────────────────────────────────────


class FakeBlobStore:
    """Records every call; never touches disk."""

    def __init__(self):
        self.calls = []

    def upload(self, bucket, path, content, content_type=None):
        self.calls.append(("upload", bucket, path))
        return path

    def remove(self, bucket, paths):
        self.calls.append(("remove", bucket, list(paths)))

    def create_signed_url(self, bucket, path, expires_in):
        self.calls.append(("sign", bucket, path, expires_in))
        return f"http://testserver/storage/files?token=fake-{path}"


class FakeChatClient:
    model = "fake-model"

    def __init__(self, reply="Hello from the assistant", tokens=42, error=None):
        self.reply = reply
        self.tokens = tokens
        self.error = error
        self.requests = []

    def complete(self, messages):
        self.requests.append(messages)
        if self.error:
            raise self.error
        return self.reply, self.tokens


class FakeTranscriber:
    def __init__(self, text="Ek gold ring 10 gram", language="hindi", error=None):
        self.text = text
        self.language = language
        self.error = error
        self.calls = []

    def transcribe(self, content, filename, language=None, prompt=None):
        self.calls.append({"size": len(content), "filename": filename, "language": language})
        if self.error:
            raise self.error
        return self.text, self.language


class FakeBillReader:
    def __init__(self, bill=None, error=None):
        self.bill = bill if bill is not None else {
            "supplier": {"name": "Kundan Bullion", "gstNumber": "27AAACK1234L1Z9"},
            "invoiceNumber": "KB-2231",
            "invoiceDate": "2026-03-10",
            "amount": 125000,
            "items": [{"name": "Gold bar 24K", "quantity": 2, "rate": 62500, "amount": 125000}],
            "confidence": 0.9,
            "detectedLanguage": "en",
        }
        self.error = error
        self.calls = []

    def read_bill(self, content, mime_type):
        self.calls.append({"size": len(content), "mime_type": mime_type})
        if self.error:
            raise self.error
        return self.bill


# ─── Fixtures ─────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _fresh_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    chat_rate_limiter.reset()
    deps._registry = None
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_for(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def auth():
    return auth_for(OWNER_ID)


@pytest.fixture
def other_auth():
    return auth_for(OTHER_ID)


@pytest.fixture
def fake_store():
    store = FakeBlobStore()
    app.dependency_overrides[deps.get_blob_store] = lambda: store
    return store


@pytest.fixture
def local_store(tmp_path):
    store = LocalBlobStore(
        root=str(tmp_path / "blobs"),
        public_base_url="http://testserver",
        secret=os.environ["SECRET_KEY"],
    )
    app.dependency_overrides[deps.get_blob_store] = lambda: store
    return store


@pytest.fixture
def fake_chat():
    chat_client = FakeChatClient()
    app.dependency_overrides[deps.get_chat_client] = lambda: chat_client
    return chat_client


@pytest.fixture
def fake_transcriber():
    transcriber = FakeTranscriber()
    app.dependency_overrides[deps.get_transcriber] = lambda: transcriber
    return transcriber


@pytest.fixture
def fake_bill_reader():
    reader = FakeBillReader()
    app.dependency_overrides[deps.get_bill_reader] = lambda: reader
    return reader

@pytest.fixture
def firm_settings(client, auth):
    resp = client.patch(
        "/settings",
        json={"firm_name": "Lakshmi Jewellers", "firm_address": "MG Road, Pune", "firm_gstin": "27ABCDE1234F1Z5"},
        headers=auth,
    )
    assert resp.status_code == 200
    return resp.json()["data"]
