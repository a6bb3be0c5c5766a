from __future__ import annotations

import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .usuario import UsuarioResumo

StatusLiteral = Literal["NO_DEPOSITO", "FORA_DEPOSITO", "DESCARTADO"]

_DIGITS = re.compile(r"^\d+$")


def _clean_patrimonio(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not _DIGITS.match(value):
        raise ValueError("Patrimônio deve conter apenas números")
    return value


class EquipamentoCreate(BaseModel):
    nome: str = Field(..., min_length=3, max_length=255)
    modelo: str = Field(..., min_length=2, max_length=255)
    numero_serie: str = Field(..., min_length=3, max_length=255)
    patrimonio: Optional[str] = None
    local: Optional[str] = None
    usuario_id: int

    model_config = {"str_strip_whitespace": True}

    @field_validator("patrimonio")
    @classmethod
    def validate_patrimonio(cls, value: Optional[str]) -> Optional[str]:
        return _clean_patrimonio(value)


class EquipamentoUpdate(BaseModel):
    """Editable fields. Status is absent on purpose: it moves only via movements or discard."""

    nome: Optional[str] = Field(default=None, min_length=3, max_length=255)
    modelo: Optional[str] = Field(default=None, min_length=2, max_length=255)
    numero_serie: Optional[str] = Field(default=None, min_length=3, max_length=255)
    patrimonio: Optional[str] = None
    local: Optional[str] = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("patrimonio")
    @classmethod
    def validate_patrimonio(cls, value: Optional[str]) -> Optional[str]:
        return _clean_patrimonio(value)


class EquipamentoResumo(BaseModel):
    id: int
    nome: str
    modelo: str
    numero_serie: str
    patrimonio: Optional[str] = None
    status: StatusLiteral

    model_config = {"from_attributes": True}


class EquipamentoOut(EquipamentoResumo):
    local: Optional[str] = None
    usuario_id: int
    created_at: datetime
    usuario: Optional[UsuarioResumo] = None
    ultima_observacao: Optional[str] = None


class MovimentacaoRecente(BaseModel):
    id: int
    tipo: Literal["ENTRADA", "SAIDA"]
    observacao: Optional[str] = None
    data_movimentacao: datetime
    usuario_id: int

    model_config = {"from_attributes": True}


class EquipamentoDetalhe(EquipamentoOut):
    movimentacoes: list[MovimentacaoRecente] = Field(default_factory=list)


class HistoricoOut(BaseModel):
    id: int
    equipamento_id: int
    acao: Literal["CADASTRO", "EDICAO", "DESCARTE"]
    campo_alterado: Optional[str] = None
    valor_anterior: Optional[str] = None
    valor_novo: Optional[str] = None
    created_at: datetime
    usuario: Optional[UsuarioResumo] = None

    model_config = {"from_attributes": True}
