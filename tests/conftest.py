import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.config.config as configs
from app.db.session import Base, get_session_factory
from app.service.admin.auth import AdminContext
from app.main import app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret"


#scope : function < class < module < package < session
@pytest.fixture(scope="function")
def sessions():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture(scope="function")
def client(sessions):
    app.dependency_overrides[get_session_factory] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def admin_credentials(monkeypatch):
    monkeypatch.setattr(configs, "ADMIN_USERNAME", ADMIN_USERNAME)
    monkeypatch.setattr(configs, "ADMIN_PASSWORD", ADMIN_PASSWORD)
    return ADMIN_USERNAME, ADMIN_PASSWORD


@pytest.fixture(scope="function")
def admin_client(client, admin_credentials):
    response = client.post(
        "/api/v1/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client


@pytest.fixture
def admin():
    return AdminContext(username=ADMIN_USERNAME)
