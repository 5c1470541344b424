import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
SCRATCH_DIR = Path(tempfile.mkdtemp(prefix="user-directory-tests-"))

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{SCRATCH_DIR / 'import.db'}")
os.environ.setdefault("UPLOAD_DIR", str(SCRATCH_DIR / "uploads"))
os.environ.setdefault("JWT_SECRET", "test-secret")

from user_directory.config import Settings  # noqa: E402  (import after env vars are set)
from user_directory.main import create_app  # noqa: E402

ADDRESS_FORM = {
    "companyAddress": "1 Market Street",
    "companyCity": "Pune",
    "companyState": "MH",
    "companyZip": "123456",
    "homeAddress": "22 Lake Road",
    "homeCity": "Mumbai",
    "homeState": "MH",
    "homeZip": "654321",
}


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        JWT_SECRET="test-secret",
        BCRYPT_ROUNDS=4,
    )


@pytest.fixture()
def client(settings):
    """Provide a TestClient bound to an app with its own database and buckets."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture()
def db_session(client):
    session = client.app.state.db.session()
    try:
        yield session
    finally:
        session.close()


def signup(client, email="owner@example.com", password="s3cret-pass", first_name="Olive", last_name="Owner"):
    return client.post(
        "/signup",
        json={"firstName": first_name, "lastName": last_name, "email": email, "password": password},
    )


@pytest.fixture()
def auth_headers(client):
    token = signup(client).json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


def user_form(**overrides):
    form = {"firstName": "A", "lastName": "B", "email": "a@b.com", **ADDRESS_FORM}
    form.update(overrides)
    return form
