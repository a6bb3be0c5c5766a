"""Staff user management."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import AppError, ErrorKind
from ..core.security import hash_password
from ..db.session import atomic
from ..models.usuario import PERFIL_CHOICES, PERFIL_USUARIO, STATUS_ATIVO, STATUS_INATIVO, Usuario
from ..services.pagination import paginate

logger = logging.getLogger("estoque.usuarios")

DUPLICATE_LOGIN_MESSAGE = "Usuário de rede já cadastrado"
NOT_FOUND_MESSAGE = "Usuário não encontrado"


def is_unique_violation(exc: IntegrityError, column: str) -> bool:
    """True when ``exc`` comes from the unique constraint/index on ``column``.

    Both SQLite ("UNIQUE constraint failed: t.col") and PostgreSQL (constraint
    names are derived from the column) mention the column in the message.
    """

    return column in str(getattr(exc, "orig", exc))


def _clean(value: str | None) -> str:
    return (value or "").strip()


def create_usuario(
    db: Session,
    *,
    nome: str,
    usuario_rede: str,
    senha: str,
    perfil: str = PERFIL_USUARIO,
) -> Usuario:
    nome = _clean(nome)
    usuario_rede = _clean(usuario_rede)
    if not nome or not usuario_rede or not senha:
        raise AppError(ErrorKind.VALIDATION, "Nome, usuário de rede e senha são obrigatórios")
    if perfil not in PERFIL_CHOICES:
        raise AppError(ErrorKind.VALIDATION, "Perfil deve ser USUARIO ou ADMIN")

    usuario = Usuario(
        nome=nome,
        usuario_rede=usuario_rede,
        senha_hash=hash_password(senha),
        perfil=perfil,
        status_usuario=STATUS_ATIVO,
    )
    try:
        with atomic(db):
            db.add(usuario)
    except IntegrityError as exc:
        if is_unique_violation(exc, "usuario_rede"):
            raise AppError(ErrorKind.DUPLICATE_LOGIN, DUPLICATE_LOGIN_MESSAGE) from exc
        raise
    db.refresh(usuario)
    return usuario


def list_usuarios(
    db: Session,
    filters: dict[str, Any] | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> tuple[list[Usuario], dict[str, Any]]:
    """Active users only, alphabetical."""

    filters = filters or {}
    stmt = select(Usuario).where(Usuario.status_usuario == STATUS_ATIVO)
    nome = _clean(filters.get("nome"))
    if nome:
        stmt = stmt.where(Usuario.nome.icontains(nome, autoescape=True))
    usuario_rede = _clean(filters.get("usuario_rede"))
    if usuario_rede:
        stmt = stmt.where(Usuario.usuario_rede.icontains(usuario_rede, autoescape=True))
    perfil = filters.get("perfil")
    if perfil in PERFIL_CHOICES:
        stmt = stmt.where(Usuario.perfil == perfil)
    stmt = stmt.order_by(Usuario.nome, Usuario.id)
    return paginate(db, stmt, page, limit)


def get_usuario(db: Session, usuario_id: int) -> Usuario:
    usuario = db.get(Usuario, usuario_id)
    if not usuario:
        raise AppError(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
    return usuario


def update_usuario(db: Session, usuario_id: int, payload: dict[str, Any]) -> Usuario:
    """Apply a partial update. ``senha`` is re-hashed; unknown keys are ignored."""

    usuario = get_usuario(db, usuario_id)
    for key in ("nome", "usuario_rede", "perfil", "status_usuario"):
        if payload.get(key) is None:
            continue
        value = payload[key]
        if isinstance(value, str):
            value = value.strip()
        setattr(usuario, key, value)
    if payload.get("senha"):
        usuario.senha_hash = hash_password(payload["senha"])

    try:
        with atomic(db):
            db.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc, "usuario_rede"):
            raise AppError(ErrorKind.DUPLICATE_LOGIN, DUPLICATE_LOGIN_MESSAGE) from exc
        raise
    db.refresh(usuario)
    return usuario


def deactivate_usuario(db: Session, usuario_id: int) -> Usuario:
    """Soft delete: flip ``status_usuario`` to 0. Rows are never removed."""

    usuario = get_usuario(db, usuario_id)
    with atomic(db):
        usuario.status_usuario = STATUS_INATIVO
    db.refresh(usuario)
    logger.info("user.deactivated", extra={"extra_data": {"usuario_id": usuario.id}})
    return usuario
