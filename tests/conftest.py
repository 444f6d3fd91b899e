import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import models
from app.db.init_db import seed_checklist_items
from app.db.session import get_db
from app.main import app
from app.services.storage import StorageClient, get_storage
from tests.factories import make_oficina, make_user


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    seed_checklist_items(db)
    yield db
    db.close()
    engine.dispose()


@pytest.fixture()
def storage(tmp_path):
    return StorageClient(local_dir=str(tmp_path / "uploads"), public_base_url="http://testserver")


@pytest.fixture()
def client(db_session, storage):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def tenant_setup(db_session):
    oficina = make_oficina(db_session, "Oficina A")
    other = make_oficina(db_session, "Oficina B")
    return {
        "oficina": oficina,
        "other": other,
        "admin": make_user(db_session, "admin@a.com", models.ROLE_TENANT_ADMIN, oficina),
        "member": make_user(db_session, "membro@a.com", models.ROLE_MEMBER, oficina),
        "outsider": make_user(db_session, "membro@b.com", models.ROLE_MEMBER, other),
        "superadmin": make_user(db_session, "root@vistoria.local", models.ROLE_SUPERADMIN),
    }
