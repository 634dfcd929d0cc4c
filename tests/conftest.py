import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="stocksync-tests-")

# Must be set before stocksync.config is imported
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'inventory.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["GOOGLE_SERVICE_ACCOUNT_FILE"] = os.path.join(_TMP_DIR, "missing-service-account.json")
os.environ["GOOGLE_SERVICE_ACCOUNT_EMAIL"] = ""
os.environ["GOOGLE_PRIVATE_KEY"] = ""
os.environ["GOOGLE_SHEETS_ID"] = ""
os.environ["GOOGLE_DRIVE_FOLDER_ID"] = ""
os.environ["DEFAULT_ADMIN_PASSWORD"] = "admin123"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from stocksync.database import Base, SessionLocal, engine, init_db  # noqa: E402
from stocksync.main import app  # noqa: E402
from stocksync.services import auth_service  # noqa: E402
from fakes import FakeSheets, FakeValues  # noqa: E402

ADMIN_PASSWORD = "admin123"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    resp = client.post(
        "/admin/login",
        data={"username": "admin", "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    return client


@pytest.fixture
def seeded_admin(db):
    auth_service.ensure_default_admin(db)
    return auth_service.get_user(db, "admin")


@pytest.fixture
def fake_values():
    return FakeValues()


@pytest.fixture
def fake_sheets(fake_values):
    return FakeSheets(fake_values)
