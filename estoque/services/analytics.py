"""Dashboard aggregates over the movement ledger and the equipment table.

Daily counts come from SQL; weekday folding and gap filling happen in Python
so the same code runs on SQLite and PostgreSQL. All days are UTC days.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..core.equipment_status import (
    MOVEMENT_ENTRADA,
    MOVEMENT_SAIDA,
    STATUS_DESCARTADO,
    STATUS_FORA_DEPOSITO,
    STATUS_NO_DEPOSITO,
)
from ..core.errors import AppError, ErrorKind
from ..models._time import utcnow
from ..models.equipamento import Equipamento
from ..models.movimentacao import Movimentacao

ALLOWED_PERIODS = (7, 15, 30)
DEFAULT_PERIOD = 30
WEEKDAYS = ("Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom")

ENTRADA_COLOR = "#4e60ff"
SAIDA_COLOR = "#f6ad37"


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise AppError(ErrorKind.INVALID_PERIOD, "Data inválida. Use o formato AAAA-MM-DD.") from exc


def resolve_window(
    periodo: int | str | None = None,
    data_inicio: date | str | None = None,
    data_fim: date | str | None = None,
    today: date | None = None,
) -> tuple[date, date]:
    """Return the inclusive ``(inicio, fim)`` day range to report on."""

    if bool(data_inicio) != bool(data_fim):
        raise AppError(
            ErrorKind.INVALID_PERIOD,
            "Informe data_inicio e data_fim para período personalizado.",
        )
    if periodo not in (None, ""):
        try:
            periodo = int(periodo)
        except (TypeError, ValueError):
            periodo = None
        if periodo not in ALLOWED_PERIODS:
            raise AppError(ErrorKind.INVALID_PERIOD, "Período inválido. Use 7, 15 ou 30 dias.")

    if data_inicio and data_fim:
        inicio, fim = _as_date(data_inicio), _as_date(data_fim)
        if fim < inicio:
            raise AppError(
                ErrorKind.INVALID_PERIOD,
                "data_fim não pode ser anterior a data_inicio.",
            )
        return inicio, fim

    dias = periodo or DEFAULT_PERIOD
    fim = today or utcnow().date()
    return fim - timedelta(days=dias - 1), fim


def _daily_totals_stmt():
    # One row per calendar day; the weekday is folded in Python because the
    # day-of-week function differs between SQLite and PostgreSQL.
    # DATE() itself comes back as text on SQLite and as a date on PostgreSQL.
    dia = func.date(Movimentacao.data_movimentacao).label("dia")
    return select(dia, func.count(Movimentacao.id)).group_by(dia)


def movement_analytics(
    db: Session,
    periodo: int | str | None = None,
    data_inicio: date | str | None = None,
    data_fim: date | str | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    inicio, fim = resolve_window(periodo, data_inicio, data_fim, today=today)
    dias = (fim - inicio).days + 1

    window_stmt = select(Movimentacao.data_movimentacao, Movimentacao.tipo).where(
        Movimentacao.data_movimentacao >= datetime.combine(inicio, time.min),
        Movimentacao.data_movimentacao <= datetime.combine(fim, time.max),
    )
    por_dia: dict[date, Counter] = {}
    for quando, tipo in db.execute(window_stmt):
        por_dia.setdefault(quando.date(), Counter())[tipo] += 1

    days = [inicio + timedelta(days=offset) for offset in range(dias)]
    entradas = [por_dia.get(day, Counter())[MOVEMENT_ENTRADA] for day in days]
    saidas = [por_dia.get(day, Counter())[MOVEMENT_SAIDA] for day in days]

    semana = [0] * len(WEEKDAYS)
    for dia, total in db.execute(_daily_totals_stmt()):
        semana[_as_date(dia).weekday()] += total

    return {
        "porData": {
            "xAxis": [day.strftime("%d/%m") for day in days],
            "series": [
                {"label": "Entrada", "data": entradas, "color": ENTRADA_COLOR},
                {"label": "Saída", "data": saidas, "color": SAIDA_COLOR},
            ],
        },
        "porDiaSemana": {
            "xAxis": [{"scaleType": "band", "data": list(WEEKDAYS)}],
            "series": [{"data": semana, "color": ENTRADA_COLOR}],
        },
        "periodo": {
            "inicio": inicio.isoformat(),
            "fim": fim.isoformat(),
            "dias": dias,
        },
    }


def equipment_analytics(db: Session) -> dict[str, Any]:
    total_col = func.count(Equipamento.id).label("total")
    por_tipo_stmt = (
        select(Equipamento.nome, total_col)
        .where(Equipamento.status != STATUS_DESCARTADO)
        .group_by(Equipamento.nome)
        .order_by(desc(total_col), Equipamento.nome)
    )
    por_tipo = [{"label": nome, "value": total} for nome, total in db.execute(por_tipo_stmt)]

    status_stmt = (
        select(Equipamento.status, func.count(Equipamento.id))
        .where(Equipamento.status != STATUS_DESCARTADO)
        .group_by(Equipamento.status)
    )
    por_status = dict(db.execute(status_stmt).all())
    no_deposito = por_status.get(STATUS_NO_DEPOSITO, 0)
    fora_deposito = por_status.get(STATUS_FORA_DEPOSITO, 0)

    return {
        "porTipo": por_tipo,
        "porStatus": {
            "noDeposito": no_deposito,
            "foraDeposito": fora_deposito,
            "total": no_deposito + fora_deposito,
        },
    }
