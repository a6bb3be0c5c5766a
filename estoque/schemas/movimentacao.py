from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from .equipamento import EquipamentoResumo
from .usuario import UsuarioResumo

TipoLiteral = Literal["ENTRADA", "SAIDA"]


class MovimentacaoCreate(BaseModel):
    """The acting user comes from the session, never from the body."""

    equipamento_id: int
    tipo: TipoLiteral
    observacao: Optional[str] = None
    data_movimentacao: Optional[datetime] = None


class MovimentacaoOut(BaseModel):
    id: int
    equipamento_id: int
    tipo: TipoLiteral
    usuario_id: int
    observacao: Optional[str] = None
    data_movimentacao: datetime
    created_at: datetime
    equipamento: Optional[EquipamentoResumo] = None
    usuario: Optional[UsuarioResumo] = None

    model_config = {"from_attributes": True}
