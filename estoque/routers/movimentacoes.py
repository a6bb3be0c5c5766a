from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..crud.movimentacoes import (
    get_movement,
    list_by_equipment,
    list_by_user,
    list_movements,
    record_movement,
)
from ..db.session import get_db
from ..deps.auth import require_user
from ..schemas.common import Page
from ..schemas.movimentacao import MovimentacaoCreate, MovimentacaoOut, TipoLiteral
from ..services.auth import CurrentUser

router = APIRouter(prefix="/movimentacoes", tags=["movimentacoes"], dependencies=[Depends(require_user)])


def _filters(tipo, data_inicio, data_fim, **extra) -> dict:
    return {"tipo": tipo, "data_inicio": data_inicio, "data_fim": data_fim, **extra}


@router.post("", response_model=MovimentacaoOut, status_code=201)
def api_create_movimentacao(
    payload: MovimentacaoCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    # The actor is always the authenticated caller.
    return record_movement(db, usuario_id=user.id, **payload.model_dump())


@router.get("", response_model=Page[MovimentacaoOut])
def api_list_movimentacoes(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    equipamento_id: Optional[int] = None,
    usuario_id: Optional[int] = None,
    tipo: Optional[TipoLiteral] = None,
    data_inicio: Optional[date] = None,
    data_fim: Optional[date] = None,
    db: Session = Depends(get_db),
):
    filters = _filters(tipo, data_inicio, data_fim, equipamento_id=equipamento_id, usuario_id=usuario_id)
    items, meta = list_movements(db, filters, page, limit)
    return {"data": items, "meta": meta}


# Scoped listings are declared before "/{movimentacao_id}" so the literal
# path segments win the match.
@router.get("/equipamento/{equipamento_id}", response_model=Page[MovimentacaoOut])
def api_list_by_equipamento(
    equipamento_id: int,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    tipo: Optional[TipoLiteral] = None,
    data_inicio: Optional[date] = None,
    data_fim: Optional[date] = None,
    db: Session = Depends(get_db),
):
    items, meta = list_by_equipment(db, equipamento_id, _filters(tipo, data_inicio, data_fim), page, limit)
    return {"data": items, "meta": meta}


@router.get("/usuario/{usuario_id}", response_model=Page[MovimentacaoOut])
def api_list_by_usuario(
    usuario_id: int,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    tipo: Optional[TipoLiteral] = None,
    data_inicio: Optional[date] = None,
    data_fim: Optional[date] = None,
    db: Session = Depends(get_db),
):
    items, meta = list_by_user(db, usuario_id, _filters(tipo, data_inicio, data_fim), page, limit)
    return {"data": items, "meta": meta}


@router.get("/{movimentacao_id}", response_model=MovimentacaoOut)
def api_get_movimentacao(movimentacao_id: int, db: Session = Depends(get_db)):
    return get_movement(db, movimentacao_id)
