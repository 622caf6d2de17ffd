import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_EXPIRES_MINUTES", "60")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

import mongomock
import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.controllers.file_controller import LocalFileStage, get_file_stage
from app.controllers.notification_controller import NotificationResult, get_notifier
from app.core.db import get_db
from app.core.mongo import ensure_submission_indexes, get_submission_collection
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models.base import Base
from app.models import admin_model  # noqa: F401
from app.models.enums import AdminRole
from app.repositories.admin_repo import create_admin


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def _record(self, channel, recipient, *args):
        self.calls.append((channel, recipient) + args)
        if self.fail:
            raise RuntimeError("smtp down")
        return NotificationResult(channel, recipient, True)

    def notify_admin_of_new_submission(self, submission):
        return self._record("admin_new_submission", "admin@learnerlicense.com", submission["submission_id"])

    def notify_applicant_of_submission(self, submission):
        return self._record("applicant_confirmation", submission["email"], submission["submission_id"])

    def notify_applicant_of_status_change(self, submission, new_status, notes=None):
        return self._record("applicant_status_update", submission["email"], new_status, notes)

    def channels(self):
        return [call[0] for call in self.calls]


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def submissions_col():
    col = mongomock.MongoClient()["learner_license_test"]["submissions"]
    ensure_submission_indexes(col)
    return col


@pytest.fixture()
def file_stage(tmp_path):
    return LocalFileStage(str(tmp_path / "uploads"), "http://testserver")


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def background():
    return BackgroundTasks()


def run_background(background):
    for task in background.tasks:
        task.func(*task.args, **task.kwargs)
    background.tasks.clear()


@pytest.fixture()
def client(db_session, submissions_col, file_stage, notifier):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_submission_collection] = lambda: submissions_col
    app.dependency_overrides[get_file_stage] = lambda: file_stage
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_admin(db, username="admin1", role=AdminRole.ADMIN, password="correct-password"):
    return create_admin(db, username, f"{username}@example.com", hash_password(password), role)


def auth_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(str(admin.admin_id))}"}


@pytest.fixture()
def admin_headers(db_session):
    return auth_headers(make_admin(db_session, "admin1", AdminRole.ADMIN))


@pytest.fixture()
def super_admin_headers(db_session):
    return auth_headers(make_admin(db_session, "root", AdminRole.SUPER_ADMIN))


JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"0" * 64
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"0" * 64
PDF_BYTES = b"%PDF-1.4\n" + b"0" * 64

VALID_FORM = {
    "fullName": "Jane Doe",
    "phoneNumber": "9876543210",
    "email": "jane@example.com",
    "dateOfBirth": "2000-01-01",
    "street": "1 Main St",
    "city": "Pune",
    "state": "MH",
    "pincode": "411001",
}


def valid_files():
    return {
        "identityProof": ("aadhaar.pdf", PDF_BYTES, "application/pdf"),
        "photograph": ("photo.jpg", JPEG_BYTES, "image/jpeg"),
        "signature": ("sign.png", PNG_BYTES, "image/png"),
    }
