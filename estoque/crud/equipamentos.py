"""CRUD helpers for equipment, including the audit trail written alongside each change.

Every write here goes through ``atomic`` so that the equipment row and its
``historico_equipamentos`` rows land (or fail) together.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import desc, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.equipment_status import ACTIVE_STATUSES, STATUS_DESCARTADO, STATUS_NO_DEPOSITO
from ..core.errors import AppError, ErrorKind
from ..db.session import atomic
from ..models.equipamento import Equipamento
from ..models.historico import ACAO_CADASTRO, ACAO_DESCARTE, ACAO_EDICAO
from ..models.movimentacao import Movimentacao
from ..services.pagination import paginate
from .historico import add_history
from .usuarios import get_usuario, is_unique_violation

logger = logging.getLogger("estoque.equipamentos")

NOT_FOUND_MESSAGE = "Equipamento não encontrado"
DUPLICATE_SERIAL_MESSAGE = "Número de série já cadastrado"
DUPLICATE_SERIAL_ON_UPDATE_MESSAGE = "Número de série já cadastrado em outro equipamento"

RECENT_MOVEMENTS = 5

# Fields compared on update; each change becomes one EDICAO history row.
TRACKED_FIELDS = ("nome", "modelo", "numero_serie", "patrimonio", "local", "usuario_id")
TEXT_FILTERS = ("nome", "modelo", "numero_serie", "patrimonio", "local")

_MIN_LENGTHS = (
    ("nome", 3, "Nome deve ter pelo menos 3 caracteres"),
    ("modelo", 2, "Modelo deve ter pelo menos 2 caracteres"),
    ("numero_serie", 3, "Número de série deve ter pelo menos 3 caracteres"),
)


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _validate_required(payload: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for field, minimum, message in _MIN_LENGTHS:
        value = _clean(payload.get(field))
        if value is None or len(value) < minimum:
            raise AppError(ErrorKind.VALIDATION, message)
        cleaned[field] = value

    usuario_id = payload.get("usuario_id")
    try:
        cleaned["usuario_id"] = int(usuario_id)
    except (TypeError, ValueError):
        raise AppError(ErrorKind.VALIDATION, "ID do usuário é obrigatório") from None
    return cleaned


def create_equipamento(db: Session, payload: dict[str, Any], acting_user_id: int | None = None) -> Equipamento:
    """Register a new item in the warehouse (status always ``NO_DEPOSITO``)."""

    data = _validate_required(payload)
    get_usuario(db, data["usuario_id"])
    actor = acting_user_id or data["usuario_id"]

    equipamento = Equipamento(
        nome=data["nome"],
        modelo=data["modelo"],
        numero_serie=data["numero_serie"],
        patrimonio=_clean(payload.get("patrimonio")),
        local=_clean(payload.get("local")),
        usuario_id=data["usuario_id"],
        status=STATUS_NO_DEPOSITO,
    )
    try:
        with atomic(db):
            db.add(equipamento)
            db.flush()
            add_history(db, equipamento_id=equipamento.id, usuario_id=actor, acao=ACAO_CADASTRO)
    except IntegrityError as exc:
        if is_unique_violation(exc, "numero_serie"):
            raise AppError(ErrorKind.DUPLICATE_SERIAL, DUPLICATE_SERIAL_MESSAGE) from exc
        raise
    db.refresh(equipamento)
    logger.info(
        "equipment.created",
        extra={"extra_data": {"equipamento_id": equipamento.id, "usuario_id": actor}},
    )
    return equipamento


def _day_bounds(value: date | datetime | str) -> tuple[datetime, datetime]:
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        value = value.date()
    start = datetime.combine(value, time.min)
    return start, start + timedelta(days=1)


def _attach_last_notes(db: Session, items: list[Equipamento]) -> None:
    ids = [item.id for item in items]
    if not ids:
        return
    stmt = (
        select(Movimentacao.equipamento_id, Movimentacao.observacao)
        .where(Movimentacao.equipamento_id.in_(ids))
        .order_by(
            Movimentacao.equipamento_id,
            desc(Movimentacao.data_movimentacao),
            desc(Movimentacao.id),
        )
    )
    latest: dict[int, str | None] = {}
    for equipamento_id, observacao in db.execute(stmt):
        latest.setdefault(equipamento_id, observacao)
    for item in items:
        setattr(item, "ultima_observacao", latest.get(item.id))


def list_active_equipamentos(
    db: Session,
    filters: dict[str, Any] | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> tuple[list[Equipamento], dict[str, Any]]:
    """Paginated listing that never includes discarded items.

    Supported filters: ``status`` (NO_DEPOSITO/FORA_DEPOSITO), ``usuario_id``,
    substring matches on the text columns, ``created_at`` (same day) and
    ``search`` (ORed across the text columns).
    """

    filters = filters or {}
    stmt = select(Equipamento).where(Equipamento.status != STATUS_DESCARTADO)

    status = filters.get("status")
    if status in ACTIVE_STATUSES:
        stmt = stmt.where(Equipamento.status == status)
    if filters.get("usuario_id") is not None:
        stmt = stmt.where(Equipamento.usuario_id == int(filters["usuario_id"]))

    for field in TEXT_FILTERS:
        value = _clean(filters.get(field))
        if value:
            stmt = stmt.where(getattr(Equipamento, field).icontains(value, autoescape=True))

    if filters.get("created_at"):
        start, end = _day_bounds(filters["created_at"])
        stmt = stmt.where(Equipamento.created_at >= start, Equipamento.created_at < end)

    search = _clean(filters.get("search"))
    if search:
        stmt = stmt.where(
            or_(*(getattr(Equipamento, field).icontains(search, autoescape=True) for field in TEXT_FILTERS))
        )

    stmt = stmt.order_by(desc(Equipamento.created_at), desc(Equipamento.id))
    items, meta = paginate(db, stmt, page, limit)
    _attach_last_notes(db, items)
    return items, meta


def get_equipamento(db: Session, equipamento_id: int) -> Equipamento:
    """Detail view: the item, its owner and its most recent movements."""

    equipamento = db.get(Equipamento, equipamento_id)
    if not equipamento:
        raise AppError(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

    stmt = (
        select(Movimentacao)
        .where(Movimentacao.equipamento_id == equipamento_id)
        .order_by(desc(Movimentacao.data_movimentacao), desc(Movimentacao.id))
        .limit(RECENT_MOVEMENTS)
    )
    recentes = list(db.execute(stmt).unique().scalars().all())
    equipamento.movimentacoes_recentes = recentes
    equipamento.ultima_observacao = recentes[0].observacao if recentes else None
    return equipamento


def update_equipamento(
    db: Session,
    equipamento_id: int,
    payload: dict[str, Any],
    acting_user_id: int,
) -> Equipamento:
    """Apply an edit and record one history row per changed field.

    The caller always becomes the responsible user. ``status`` is not
    editable here.
    """

    equipamento = db.get(Equipamento, equipamento_id)
    if not equipamento:
        raise AppError(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

    incoming: dict[str, Any] = {}
    for field, minimum, message in _MIN_LENGTHS:
        if payload.get(field) is None:
            continue
        value = _clean(payload[field])
        if value is None or len(value) < minimum:
            raise AppError(ErrorKind.VALIDATION, message)
        incoming[field] = value
    for field in ("patrimonio", "local"):
        if field in payload:
            incoming[field] = _clean(payload[field])
    incoming["usuario_id"] = acting_user_id

    changes = []
    for field in TRACKED_FIELDS:
        if field not in incoming:
            continue
        before = getattr(equipamento, field)
        after = incoming[field]
        if before != after:
            changes.append((field, before, after))

    try:
        with atomic(db):
            for field, before, after in changes:
                setattr(equipamento, field, after)
                add_history(
                    db,
                    equipamento_id=equipamento.id,
                    usuario_id=acting_user_id,
                    acao=ACAO_EDICAO,
                    campo_alterado=field,
                    valor_anterior=before,
                    valor_novo=after,
                )
            db.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc, "numero_serie"):
            raise AppError(ErrorKind.DUPLICATE_SERIAL, DUPLICATE_SERIAL_ON_UPDATE_MESSAGE) from exc
        raise
    db.refresh(equipamento)
    logger.info(
        "equipment.updated",
        extra={
            "extra_data": {
                "equipamento_id": equipamento.id,
                "usuario_id": acting_user_id,
                "campos": [field for field, _, _ in changes],
            }
        },
    )
    return equipamento


def discard_equipamento(db: Session, equipamento_id: int, acting_user_id: int) -> Equipamento:
    equipamento = db.get(Equipamento, equipamento_id)
    if not equipamento:
        raise AppError(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

    previous = equipamento.status
    with atomic(db):
        equipamento.status = STATUS_DESCARTADO
        add_history(
            db,
            equipamento_id=equipamento.id,
            usuario_id=acting_user_id,
            acao=ACAO_DESCARTE,
            campo_alterado="status",
            valor_anterior=previous,
            valor_novo=STATUS_DESCARTADO,
        )
    db.refresh(equipamento)
    logger.info(
        "equipment.discarded",
        extra={"extra_data": {"equipamento_id": equipamento.id, "usuario_id": acting_user_id}},
    )
    return equipamento
