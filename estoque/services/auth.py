"""Login, token verification and logout (token blacklist)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import AppError, ErrorKind
from ..core.security import create_access_token, decode_access_token, peek_claims, verify_password
from ..models._time import utcnow
from ..models.token_blacklist import TokenBlacklist
from ..models.usuario import Usuario

logger = logging.getLogger("estoque.auth")

INVALID_CREDENTIALS_MESSAGE = "Credenciais inválidas"
INVALID_TOKEN_MESSAGE = "Token inválido"
EXPIRED_TOKEN_MESSAGE = "Token expirado"


@dataclass(frozen=True)
class CurrentUser:
    """Identity carried by a verified token."""

    id: int
    usuario_rede: str
    nome: str


@dataclass(frozen=True)
class LoginResult:
    token: str
    usuario: Usuario


def login(db: Session, usuario_rede: str | None, senha: str | None) -> LoginResult:
    usuario_rede = (usuario_rede or "").strip()
    if not usuario_rede or not senha:
        raise AppError(ErrorKind.MISSING_CREDENTIALS, "Usuário de rede e senha são obrigatórios")

    usuario = db.execute(select(Usuario).where(Usuario.usuario_rede == usuario_rede)).scalars().first()
    if not usuario:
        logger.info("auth.login_failed", extra={"extra_data": {"usuario_rede": usuario_rede, "reason": "unknown"}})
        raise AppError(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
    # An inactive account is reported before the password is even checked.
    if not usuario.is_active:
        logger.info("auth.login_failed", extra={"extra_data": {"usuario_rede": usuario_rede, "reason": "inactive"}})
        raise AppError(ErrorKind.USER_DEACTIVATED, "Usuário desativado")
    if not verify_password(senha, usuario.senha_hash):
        logger.info("auth.login_failed", extra={"extra_data": {"usuario_rede": usuario_rede, "reason": "password"}})
        raise AppError(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

    token = create_access_token(
        {
            "sub": str(usuario.id),
            "id": usuario.id,
            "usuario_rede": usuario.usuario_rede,
            "nome": usuario.nome,
        }
    )
    logger.info("auth.login", extra={"extra_data": {"usuario_id": usuario.id}})
    return LoginResult(token=token, usuario=usuario)


def is_blacklisted(db: Session, token: str) -> bool:
    stmt = select(TokenBlacklist.id).where(TokenBlacklist.token == token)
    return db.execute(stmt).first() is not None


def verify_token(db: Session, token: str) -> CurrentUser:
    if is_blacklisted(db, token):
        raise AppError(ErrorKind.INVALID_TOKEN, INVALID_TOKEN_MESSAGE)
    try:
        claims = decode_access_token(token)
    except ExpiredSignatureError as exc:
        raise AppError(ErrorKind.EXPIRED_TOKEN, EXPIRED_TOKEN_MESSAGE) from exc
    except JWTError as exc:
        raise AppError(ErrorKind.INVALID_TOKEN, INVALID_TOKEN_MESSAGE) from exc

    try:
        return CurrentUser(
            id=int(claims["id"]),
            usuario_rede=str(claims["usuario_rede"]),
            nome=str(claims.get("nome") or ""),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise AppError(ErrorKind.INVALID_TOKEN, INVALID_TOKEN_MESSAGE) from exc


def blacklist_token(db: Session, token: str | None) -> None:
    """Revoke ``token`` until its own expiry.

    Garbage tokens and tokens already on the list are ignored.
    """

    if not token:
        return
    try:
        claims = peek_claims(token)
    except JWTError:
        return

    exp = claims.get("exp")
    if isinstance(exp, (int, float)):
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc).replace(tzinfo=None)
    else:
        expires_at = utcnow() + timedelta(minutes=settings.JWT_ACCESS_TTL_MIN)

    db.add(TokenBlacklist(token=token, expires_at=expires_at))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return
    logger.info("auth.logout", extra={"extra_data": {"usuario_id": claims.get("id")}})
