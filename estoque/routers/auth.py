from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ..core.config import settings
from ..db.session import get_db
from ..deps.auth import extract_token
from ..schemas.auth import LoginRequest, LoginResponse
from ..schemas.common import MessageResponse
from ..schemas.usuario import UsuarioOut
from ..services.auth import blacklist_token, login

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def api_login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    result = login(db, payload.usuario_rede, payload.senha)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=result.token,
        max_age=settings.cookie_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return LoginResponse(token=result.token, usuario=UsuarioOut.model_validate(result.usuario, from_attributes=True))


@router.post("/logout", response_model=MessageResponse)
def api_logout(request: Request, response: Response, db: Session = Depends(get_db)):
    """Revoke the caller's token (if any) and always clear the cookie."""

    blacklist_token(db, extract_token(request, strict=False))
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return MessageResponse(message="Logout realizado com sucesso")
