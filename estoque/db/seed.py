"""Schema creation and the default administrator account.

``init_db`` runs when the app starts. It can also be run by hand::

    python -m estoque.db.seed --login admin --password "s3nh4-forte"
"""

from __future__ import annotations

import argparse
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models  # noqa: F401  (registers every table)
from ..core.config import settings
from ..core.security import hash_password
from ..models.usuario import PERFIL_ADMIN, STATUS_ATIVO, Usuario
from .session import Base, SessionLocal, engine

logger = logging.getLogger("estoque.seed")


def ensure_admin(
    db: Session,
    login: str | None = None,
    password: str | None = None,
    nome: str | None = None,
) -> Usuario:
    """Create the ADMIN account unless a user with that login already exists."""

    login = login or settings.ADMIN_LOGIN
    existing = db.execute(select(Usuario).where(Usuario.usuario_rede == login)).scalars().first()
    if existing:
        return existing

    admin = Usuario(
        nome=nome or settings.ADMIN_NAME,
        usuario_rede=login,
        senha_hash=hash_password(password or settings.ADMIN_PASSWORD),
        perfil=PERFIL_ADMIN,
        status_usuario=STATUS_ATIVO,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("seed.admin_created", extra={"extra_data": {"usuario_rede": login}})
    return admin


def init_db(seed: bool | None = None) -> None:
    Base.metadata.create_all(bind=engine)
    if not (settings.SEED_ADMIN if seed is None else seed):
        return
    with SessionLocal() as db:
        ensure_admin(db)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create tables and the default ADMIN user.")
    parser.add_argument("--login", default=settings.ADMIN_LOGIN)
    parser.add_argument("--password", default=settings.ADMIN_PASSWORD)
    parser.add_argument("--nome", default=settings.ADMIN_NAME)
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        admin = ensure_admin(db, login=args.login, password=args.password, nome=args.nome)
    print(f"ADMIN pronto: {admin.usuario_rede} (id={admin.id})")


if __name__ == "__main__":
    main()
