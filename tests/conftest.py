"""
Arquivo API - Test Configuration and Fixtures
"""
import os
import tempfile
from datetime import date
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

# Set testing environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="arquivo-tests-")

from app.core.security import (
    LoginRateLimiter, SessionStore, get_rate_limiter, get_session_store, hash_password,
)
from app.db import Base, build_engine, get_db
from app.main import create_app
from app.models import User
from app.schemas import EmployeeIn, FileCabinetIn
from app.seed import seed_document_taxonomy
from app.services.employees import create_employee
from app.services.storage import create_file_cabinet


@pytest.fixture
def engine():
    """Fresh in-memory database for each test"""
    eng = build_engine("sqlite://")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    TestSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestSessionLocal()
    seed_document_taxonomy(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore(ttl_minutes=60)


@pytest.fixture
def client(db: Session, session_store: SessionStore) -> Generator[TestClient, None, None]:
    """Test client with database and session store overrides"""
    app = create_app(init_database=False)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store
    limiter = LoginRateLimiter(5, 60)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db: Session) -> User:
    user = User(name="Administrador", login="admin", password_hash=hash_password("secret123", rounds=4))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_headers(client: TestClient, admin_user: User) -> dict:
    resp = client.post("/api/v1/auth/login", json={"login": "admin", "password": "secret123"})
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


# -------- factories --------
@pytest.fixture
def make_employee(db: Session):
    counter = {"n": 0}

    def _make(full_name: str | None = None, registration: str | None = None, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        data = EmployeeIn(
            full_name=full_name or f"Funcionário {n}",
            registration=registration or f"M{n:04d}",
            admission_date=kwargs.pop("admission_date", date(2020, 1, 1)),
            **kwargs,
        )
        return create_employee(db, data)

    return _make


@pytest.fixture
def make_cabinet(db: Session):
    def _make(number: str, drawer_count: int = 1, drawer_capacity: int = 2, location: str | None = None):
        return create_file_cabinet(db, FileCabinetIn(
            number=number, location=location, drawer_count=drawer_count, drawer_capacity=drawer_capacity,
        ))

    return _make


@pytest.fixture
def drawers_of(db: Session):
    from sqlalchemy import select
    from app.models import Drawer

    def _drawers(cabinet_id: int) -> list[Drawer]:
        return list(db.scalars(
            select(Drawer).where(Drawer.cabinet_id == cabinet_id).order_by(Drawer.number)
        ).all())

    return _drawers
