import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# Ensure tests always use SQLite to avoid requiring Postgres drivers
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_jobboard.db")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="test_jobboard_uploads_"))

from jobboard import crud, models
from jobboard.auth import get_blacklist
from jobboard.blacklist import InMemoryTokenBlacklist
from jobboard.config import settings
from jobboard.database import Base, get_db
from jobboard.main import app
from jobboard.ratelimit import auth_limiter

PASSWORD = "password123"


@pytest.fixture(scope="session")
def test_db_url():
    # Use a temporary SQLite file to persist across tests within a session
    db_fd, db_path = tempfile.mkstemp(prefix="test_jobboard_", suffix=".db")
    os.close(db_fd)
    url = f"sqlite:///{db_path}"
    yield url
    try:
        os.remove(db_path)
    except FileNotFoundError:
        pass


@pytest.fixture()
def db_session(test_db_url):
    engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    # Create all tables
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
    # Ensure file handles are released on Windows
    engine.dispose()


@pytest.fixture()
def blacklist():
    return InMemoryTokenBlacklist()


@pytest.fixture()
def client(db_session, blacklist, tmp_path, monkeypatch):
    # Override the dependency to use the test session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    auth_limiter.reset()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blacklist] = lambda: blacklist
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email, role, name="Test User", password=PASSWORD, **extra):
    payload = {"name": name, "email": email, "password": password, "role": role, **extra}
    r = client.post("/api/auth/register", json=payload)
    assert r.status_code == 201, r.text
    data = r.json()
    return {"user": data["user"], "headers": bearer(data["accessToken"]), "tokens": data}


@pytest.fixture()
def signup(client):
    def _signup(email, role, **kwargs):
        return register(client, email, role, **kwargs)

    return _signup


@pytest.fixture()
def job_payload():
    return _job_payload


@pytest.fixture()
def employer(client):
    return register(client, "boss@acme.com", "employer", name="Acme Boss", companyName="Acme")


@pytest.fixture()
def other_employer(client):
    return register(client, "boss@globex.com", "employer", name="Globex Boss", companyName="Globex")


@pytest.fixture()
def jobseeker(client):
    return register(client, "jane@x.com", "jobseeker", name="Jane")


@pytest.fixture()
def admin(client, db_session):
    account = crud.create_account(
        db_session, name="Admin", email="admin@example.com", password=PASSWORD, role=models.Role.ADMIN
    )
    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": PASSWORD, "role": "admin"})
    assert r.status_code == 200, r.text
    return {"user": r.json()["user"], "headers": bearer(r.json()["accessToken"]), "account": account}


def _job_payload(**overrides):
    payload = {
        "title": "Backend Engineer",
        "description": "Build and run our Python APIs",
        "requirements": ["3+ years Python", " SQL "],
        "location": {"city": "Austin", "state": "TX", "country": "USA", "remote": False},
        "salaryRange": {"min": 90000, "max": 120000, "currency": "usd"},
        "jobType": "FULL_TIME",
        "applicationDeadline": (datetime.now(timezone.utc) + timedelta(days=14)).isoformat(),
        "skills": ["python", "fastapi"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def make_job(client, employer):
    def _make(headers=None, **overrides):
        r = client.post("/api/jobs", json=_job_payload(**overrides), headers=headers or employer["headers"])
        assert r.status_code == 201, r.text
        return r.json()["data"]["job"]

    return _make


@pytest.fixture()
def set_status(client, admin):
    def _set(job_id, status, notes=None):
        body = {"status": status}
        if notes is not None:
            body["adminNotes"] = notes
        r = client.patch(f"/api/jobs/admin/jobs/{job_id}/status", json=body, headers=admin["headers"])
        assert r.status_code == 200, r.text
        return r.json()["data"]["job"]

    return _set


@pytest.fixture()
def approved_job(make_job, set_status):
    job = make_job()
    return set_status(job["id"], "APPROVED")
