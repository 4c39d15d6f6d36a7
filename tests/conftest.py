import os
import tempfile

# Must be set before app modules read their configuration
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_DIRECTORY", tempfile.mkdtemp(prefix="character-studio-"))
os.environ.setdefault("API_KEY_ENCRYPTION_SECRET", "test-secret")

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.credentials import CredentialCipher, get_cipher
from app.core.database import get_db
from app.core.generation import get_client_factory
from app.core.generation.outputs import FileListOutput, StreamOutput, UrlOutput
from app.core.storage import BlobStore, get_blob_store
from app.main import app
from app.models import Base, User

TEST_API_KEY = "r8_testkey1234567890"


class FakeGenerationClient:
    def __init__(self, factory, api_key):
        self.factory = factory
        self.api_key = api_key

    def run(self, model, input):
        self.factory.calls.append({"model": model, "input": input, "api_key": self.api_key})
        if self.factory.error is not None:
            raise self.factory.error
        return self.factory.output

    def fetch(self, url):
        self.factory.fetched.append(url)
        return StreamOutput(
            chunks=[self.factory.body[:4], self.factory.body[4:]],
            content_type=self.factory.content_type,
        )


class FakeClientFactory:
    """Stands in for ReplicateClient; records every call."""

    def __init__(self):
        self.output = FileListOutput(files=[UrlOutput(url="https://replicate.delivery/out.webp")])
        self.error = None
        self.body = b"fake-generated-bytes"
        self.content_type = "image/webp"
        self.api_keys = []
        self.calls = []
        self.fetched = []

    def __call__(self, api_key):
        self.api_keys.append(api_key)
        return FakeGenerationClient(self, api_key)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def blobs(tmp_path):
    return BlobStore(directory=str(tmp_path / "blobs"), base_url="http://testserver")


@pytest.fixture
def cipher():
    return CredentialCipher("test-secret")


@pytest.fixture
def generation():
    return FakeClientFactory()


@pytest.fixture
def make_user(db):
    def _make_user(email=None, api_key=None, cipher=None):
        user = User(id=str(uuid4()), email=email or f"{uuid4().hex[:8]}@example.com")
        if api_key:
            user.encrypted_api_key, user.api_key_iv = cipher.encrypt(api_key)
        db.add(user)
        db.commit()
        return user.id
    return _make_user


@pytest.fixture
def client(session_factory, blobs, cipher, generation):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blobs
    app.dependency_overrides[get_cipher] = lambda: cipher
    app.dependency_overrides[get_client_factory] = lambda: generation
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    def _login(email="ada@example.com"):
        r = client.post("/auth/login", json={"email": email})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['token']}"}
    return _login


@pytest.fixture
def stored_files(blobs):
    def _stored_files():
        if not os.path.isdir(blobs.directory):
            return []
        return sorted(os.listdir(blobs.directory))
    return _stored_files
