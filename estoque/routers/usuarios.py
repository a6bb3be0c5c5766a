from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..crud.usuarios import (
    create_usuario,
    deactivate_usuario,
    get_usuario,
    list_usuarios,
    update_usuario,
)
from ..db.session import get_db
from ..deps.auth import require_admin, require_user
from ..schemas.common import MessageResponse, Page
from ..schemas.usuario import PerfilLiteral, UsuarioCreate, UsuarioOut, UsuarioUpdate

router = APIRouter(prefix="/usuarios", tags=["usuarios"], dependencies=[Depends(require_user)])


@router.get("", response_model=Page[UsuarioOut])
def api_list_usuarios(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    nome: Optional[str] = None,
    usuario_rede: Optional[str] = None,
    perfil: Optional[PerfilLiteral] = None,
    db: Session = Depends(get_db),
):
    filters = {"nome": nome, "usuario_rede": usuario_rede, "perfil": perfil}
    items, meta = list_usuarios(db, filters, page, limit)
    return {"data": items, "meta": meta}


@router.post("", response_model=UsuarioOut, status_code=201, dependencies=[Depends(require_admin)])
def api_create_usuario(payload: UsuarioCreate, db: Session = Depends(get_db)):
    return create_usuario(db, **payload.model_dump())


@router.get("/{usuario_id}", response_model=UsuarioOut)
def api_get_usuario(usuario_id: int, db: Session = Depends(get_db)):
    return get_usuario(db, usuario_id)


@router.put("/{usuario_id}", response_model=UsuarioOut, dependencies=[Depends(require_admin)])
def api_update_usuario(usuario_id: int, payload: UsuarioUpdate, db: Session = Depends(get_db)):
    return update_usuario(db, usuario_id, payload.model_dump(exclude_unset=True))


@router.delete("/{usuario_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
def api_deactivate_usuario(usuario_id: int, db: Session = Depends(get_db)):
    deactivate_usuario(db, usuario_id)
    return MessageResponse(message="Usuário desativado com sucesso")
