from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import require_user
from ..services.analytics import equipment_analytics, movement_analytics

router = APIRouter(prefix="/analytics", tags=["analytics"], dependencies=[Depends(require_user)])


@router.get("/movimentacoes")
def api_movement_analytics(
    periodo: Optional[str] = None,
    data_inicio: Optional[date] = None,
    data_fim: Optional[date] = None,
    db: Session = Depends(get_db),
):
    data = movement_analytics(db, periodo=periodo, data_inicio=data_inicio, data_fim=data_fim)
    return {"success": True, "data": data}


@router.get("/equipamentos")
def api_equipment_analytics(db: Session = Depends(get_db)):
    return {"success": True, "data": equipment_analytics(db)}
