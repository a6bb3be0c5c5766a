from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..crud.equipamentos import (
    create_equipamento,
    discard_equipamento,
    get_equipamento,
    list_active_equipamentos,
    update_equipamento,
)
from ..crud.historico import list_history
from ..db.session import get_db
from ..deps.auth import require_user
from ..schemas.common import Page
from ..schemas.equipamento import (
    EquipamentoCreate,
    EquipamentoDetalhe,
    EquipamentoOut,
    EquipamentoUpdate,
    HistoricoOut,
    MovimentacaoRecente,
)
from ..services.auth import CurrentUser

router = APIRouter(prefix="/equipamentos", tags=["equipamentos"])


def _detail(equipamento) -> EquipamentoDetalhe:
    base = EquipamentoOut.model_validate(equipamento, from_attributes=True)
    return EquipamentoDetalhe(
        **base.model_dump(),
        movimentacoes=[
            MovimentacaoRecente.model_validate(mov, from_attributes=True)
            for mov in equipamento.movimentacoes_recentes or []
        ],
    )


@router.get("", response_model=Page[EquipamentoOut])
def api_list_equipamentos(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    status: Optional[Literal["NO_DEPOSITO", "FORA_DEPOSITO"]] = None,
    usuario_id: Optional[int] = None,
    nome: Optional[str] = None,
    modelo: Optional[str] = None,
    numero_serie: Optional[str] = None,
    patrimonio: Optional[str] = None,
    local: Optional[str] = None,
    created_at: Optional[date] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_user),
):
    filters = {
        "status": status,
        "usuario_id": usuario_id,
        "nome": nome,
        "modelo": modelo,
        "numero_serie": numero_serie,
        "patrimonio": patrimonio,
        "local": local,
        "created_at": created_at,
        "search": search,
    }
    items, meta = list_active_equipamentos(db, filters, page, limit)
    return {"data": items, "meta": meta}


@router.post("", response_model=EquipamentoOut, status_code=201)
def api_create_equipamento(
    payload: EquipamentoCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    return create_equipamento(db, payload.model_dump(), acting_user_id=user.id)


@router.get("/{equipamento_id}", response_model=EquipamentoDetalhe)
def api_get_equipamento(
    equipamento_id: int,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_user),
):
    return _detail(get_equipamento(db, equipamento_id))


@router.get("/{equipamento_id}/historico", response_model=Page[HistoricoOut])
def api_equipamento_historico(
    equipamento_id: int,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_user),
):
    get_equipamento(db, equipamento_id)
    items, meta = list_history(db, equipamento_id, page, limit)
    return {"data": items, "meta": meta}


@router.put("/{equipamento_id}", response_model=EquipamentoOut)
def api_update_equipamento(
    equipamento_id: int,
    payload: EquipamentoUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    return update_equipamento(db, equipamento_id, payload.model_dump(exclude_unset=True), user.id)


@router.delete("/{equipamento_id}", response_model=EquipamentoOut)
def api_discard_equipamento(
    equipamento_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    return discard_equipamento(db, equipamento_id, user.id)
