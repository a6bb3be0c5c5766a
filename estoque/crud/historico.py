"""Equipment audit trail helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..models.historico import HistoricoEquipamento
from ..services.pagination import paginate


def _as_text(value: Any) -> str | None:
    return None if value is None else str(value)


def add_history(
    db: Session,
    *,
    equipamento_id: int,
    usuario_id: int,
    acao: str,
    campo_alterado: str | None = None,
    valor_anterior: Any = None,
    valor_novo: Any = None,
) -> HistoricoEquipamento:
    """Stage a history row on the session. The caller owns the commit."""

    entry = HistoricoEquipamento(
        equipamento_id=equipamento_id,
        usuario_id=usuario_id,
        acao=acao,
        campo_alterado=campo_alterado,
        valor_anterior=_as_text(valor_anterior),
        valor_novo=_as_text(valor_novo),
    )
    db.add(entry)
    return entry


def list_history(
    db: Session,
    equipamento_id: int,
    page: int | None = None,
    limit: int | None = 50,
) -> tuple[list[HistoricoEquipamento], dict[str, Any]]:
    stmt = (
        select(HistoricoEquipamento)
        .where(HistoricoEquipamento.equipamento_id == equipamento_id)
        .order_by(desc(HistoricoEquipamento.created_at), desc(HistoricoEquipamento.id))
    )
    return paginate(db, stmt, page, limit)
