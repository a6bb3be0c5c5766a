"""Movement ledger: recording ENTRADA/SAIDA and querying the history."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..core.equipment_status import MOVEMENT_CHOICES, resolve_transition
from ..core.errors import AppError, ErrorKind
from ..db.session import atomic
from ..models._time import to_naive_utc, utcnow
from ..models.equipamento import Equipamento
from ..models.movimentacao import Movimentacao
from ..models.usuario import Usuario
from ..services.pagination import paginate

logger = logging.getLogger("estoque.movimentacoes")

NOT_FOUND_MESSAGE = "Movimentação não encontrada"


def _as_id(value: Any, message: str) -> int:
    if value is None or value == "":
        raise AppError(ErrorKind.VALIDATION, message)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise AppError(ErrorKind.VALIDATION, message) from None


def record_movement(
    db: Session,
    *,
    equipamento_id: Any,
    tipo: Any,
    usuario_id: Any,
    observacao: str | None = None,
    data_movimentacao: datetime | None = None,
) -> Movimentacao:
    """Append a ledger row and move the equipment to its new status.

    Guards run before anything is written; the ledger row and the status
    change commit together.
    """

    equipamento_id = _as_id(equipamento_id, "ID do equipamento é obrigatório")
    if tipo not in MOVEMENT_CHOICES:
        raise AppError(ErrorKind.VALIDATION, "Tipo deve ser ENTRADA ou SAIDA")
    usuario_id = _as_id(usuario_id, "ID do usuário é obrigatório")

    observacao = (observacao or "").strip() or None
    quando = to_naive_utc(data_movimentacao) if data_movimentacao else utcnow()

    with atomic(db):
        # Row lock on backends that support it (no-op on SQLite).
        equipamento = db.get(Equipamento, equipamento_id, with_for_update=True)
        if not equipamento:
            raise AppError(ErrorKind.NOT_FOUND, "Equipamento não encontrado")
        if not db.get(Usuario, usuario_id):
            raise AppError(ErrorKind.NOT_FOUND, "Usuário não encontrado")

        novo_status = resolve_transition(equipamento.status, tipo)

        movimentacao = Movimentacao(
            equipamento_id=equipamento.id,
            tipo=tipo,
            usuario_id=usuario_id,
            observacao=observacao,
            data_movimentacao=quando,
        )
        db.add(movimentacao)
        equipamento.status = novo_status

    db.refresh(movimentacao)
    logger.info(
        "movement.recorded",
        extra={
            "extra_data": {
                "movimentacao_id": movimentacao.id,
                "equipamento_id": equipamento_id,
                "tipo": tipo,
                "usuario_id": usuario_id,
                "status": novo_status,
            }
        },
    )
    return movimentacao


def _start_of(value: date | datetime | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value)
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return datetime.combine(value, time.min)


def _end_of(value: date | datetime | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value)
    if isinstance(value, datetime):
        return to_naive_utc(value)
    # A bare date covers the whole day.
    return datetime.combine(value, time.max)


def list_movements(
    db: Session,
    filters: dict[str, Any] | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> tuple[list[Movimentacao], dict[str, Any]]:
    """Newest-first ledger query; every filter is optional."""

    filters = filters or {}
    stmt = select(Movimentacao)
    if filters.get("equipamento_id") is not None:
        stmt = stmt.where(Movimentacao.equipamento_id == int(filters["equipamento_id"]))
    if filters.get("tipo") in MOVEMENT_CHOICES:
        stmt = stmt.where(Movimentacao.tipo == filters["tipo"])
    if filters.get("usuario_id") is not None:
        stmt = stmt.where(Movimentacao.usuario_id == int(filters["usuario_id"]))
    if filters.get("data_inicio"):
        stmt = stmt.where(Movimentacao.data_movimentacao >= _start_of(filters["data_inicio"]))
    if filters.get("data_fim"):
        stmt = stmt.where(Movimentacao.data_movimentacao <= _end_of(filters["data_fim"]))
    stmt = stmt.order_by(desc(Movimentacao.data_movimentacao), desc(Movimentacao.id))
    return paginate(db, stmt, page, limit)


def list_by_equipment(db: Session, equipamento_id: int, filters: dict[str, Any] | None = None, page=None, limit=None):
    scoped = dict(filters or {}, equipamento_id=equipamento_id)
    return list_movements(db, scoped, page, limit)


def list_by_user(db: Session, usuario_id: int, filters: dict[str, Any] | None = None, page=None, limit=None):
    scoped = dict(filters or {}, usuario_id=usuario_id)
    return list_movements(db, scoped, page, limit)


def get_movement(db: Session, movimentacao_id: int) -> Movimentacao:
    movimentacao = db.get(Movimentacao, movimentacao_id)
    if not movimentacao:
        raise AppError(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
    return movimentacao
