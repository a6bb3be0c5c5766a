import itertools
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read once at import time, so these must be in place first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_ADMIN", "false")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from estoque import models  # noqa: E402,F401  (registers tables)
from estoque.core.security import create_access_token  # noqa: E402
from estoque.crud.equipamentos import create_equipamento  # noqa: E402
from estoque.crud.usuarios import create_usuario  # noqa: E402
from estoque.db.session import Base, get_db  # noqa: E402
from estoque.models.usuario import PERFIL_ADMIN, PERFIL_USUARIO  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def make_user(db_session):
    counter = itertools.count(1)

    def _make(usuario_rede=None, nome=None, senha="senha123", perfil=PERFIL_USUARIO):
        n = next(counter)
        return create_usuario(
            db_session,
            nome=nome or f"Usuario {n:02d}",
            usuario_rede=usuario_rede or f"usuario{n:02d}",
            senha=senha,
            perfil=perfil,
        )

    return _make


@pytest.fixture()
def user(make_user):
    return make_user(usuario_rede="joao.silva", nome="João Silva")


@pytest.fixture()
def admin(make_user):
    return make_user(usuario_rede="admin", nome="Administrador Sistema", perfil=PERFIL_ADMIN)


@pytest.fixture()
def make_equipamento(db_session):
    counter = itertools.count(1)

    def _make(owner, **overrides):
        n = next(counter)
        payload = {
            "nome": "Notebook",
            "modelo": "Dell Latitude 5420",
            "numero_serie": f"SN-{n:04d}",
            "usuario_id": owner.id,
        }
        payload.update(overrides)
        return create_equipamento(db_session, payload, acting_user_id=owner.id)

    return _make


def token_for(usuario, **kwargs):
    claims = {
        "sub": str(usuario.id),
        "id": usuario.id,
        "usuario_rede": usuario.usuario_rede,
        "nome": usuario.nome,
    }
    return create_access_token(claims, **kwargs)


def auth_headers(usuario):
    return {"Authorization": f"Bearer {token_for(usuario)}"}


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient

    from estoque.main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
