import os
import uuid

# Settings are read at import time; point them at an in-memory database first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_scheduler.core.database import Base, get_db
from clinic_scheduler.core.security import create_access_token
from clinic_scheduler.main import app
from clinic_scheduler.models.staff import StaffMember


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(role: str, staff_id=None) -> dict:
    claims = {"sub": str(uuid.uuid4()), "role": role}
    if staff_id is not None:
        claims["staff_id"] = str(staff_id)
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture
def manager_headers():
    return auth_headers("manager")


@pytest.fixture
def make_staff(db_session):
    counter = {"n": 0}

    def _make(name="Dana Reyes", is_active=True, **kw):
        counter["n"] += 1
        staff = StaffMember(
            employee_code=kw.pop("employee_code", f"EMP-{counter['n']:03d}"),
            name=name,
            position=kw.pop("position", "NURSE"),
            department=kw.pop("department", "Pharmacy"),
            is_active=is_active,
            **kw,
        )
        db_session.add(staff)
        db_session.commit()
        db_session.refresh(staff)
        return staff

    return _make
