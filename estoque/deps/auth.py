from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import AppError, ErrorKind
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..models.usuario import Usuario
from ..services.auth import CurrentUser, verify_token


def extract_token(request: Request, *, strict: bool = True) -> str | None:
    """Find the session token: the auth cookie wins over ``Authorization: Bearer``.

    Returns ``None`` when neither is present. A header using any other scheme
    is rejected outright unless ``strict`` is off, in which case it counts as
    no token at all.
    """

    cookie = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if cookie:
        return cookie

    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, credentials = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer" or not credentials:
        if not strict:
            return None
        raise AppError(ErrorKind.MALFORMED_TOKEN, "Token mal formatado")
    return credentials


def _set_principal(request: Request, user: CurrentUser) -> None:
    principal = f"user:{user.usuario_rede}"
    principal_ctx_var.set(principal)
    request.state.principal = principal
    request.state.user = user


def require_user(request: Request, db: Session = Depends(get_db)) -> CurrentUser:
    token = extract_token(request)
    if not token:
        raise AppError(ErrorKind.MISSING_TOKEN, "Token não fornecido")
    user = verify_token(db, token)
    _set_principal(request, user)
    return user


def require_admin(
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
) -> CurrentUser:
    # The role is read from the database, so a demotion takes effect before the token expires.
    usuario = db.get(Usuario, user.id)
    if not usuario or not usuario.is_admin:
        raise AppError(ErrorKind.FORBIDDEN, "Acesso negado")
    return user
