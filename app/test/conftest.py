import os

# La configuración se lee al importar la app: usar SQLite en memoria
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.main import app
from app.core.db import get_session
from app.models.referral_admin import ReferralAdmin, AdminRole

WRITE_ADMIN = "0x" + "f" * 40
READ_ADMIN = "0x" + "e" * 40


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="admins")
def admins_fixture(session: Session):
    """Un administrador 'write' y uno 'read'."""
    session.add(ReferralAdmin(wallet=WRITE_ADMIN, role=AdminRole.WRITE))
    session.add(ReferralAdmin(wallet=READ_ADMIN, role=AdminRole.READ))
    session.commit()
    return {"write": WRITE_ADMIN, "read": READ_ADMIN}


@pytest.fixture(name="broken_session")
def broken_session_fixture(tmp_path):
    """Sesión contra una base de datos que no se puede abrir."""
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'referrals.db'}")
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session
    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="broken_client")
def broken_client_fixture(broken_session: Session):
    def get_session_override():
        return broken_session
    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
