from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

PerfilLiteral = Literal["USUARIO", "ADMIN"]


class UsuarioCreate(BaseModel):
    nome: str = Field(..., min_length=3, max_length=255)
    usuario_rede: str = Field(..., min_length=3, max_length=150)
    senha: str = Field(..., min_length=6)
    perfil: PerfilLiteral = "USUARIO"

    model_config = {"str_strip_whitespace": True}


class UsuarioUpdate(BaseModel):
    nome: Optional[str] = Field(default=None, min_length=3, max_length=255)
    usuario_rede: Optional[str] = Field(default=None, min_length=3, max_length=150)
    senha: Optional[str] = Field(default=None, min_length=6)
    perfil: Optional[PerfilLiteral] = None
    status_usuario: Optional[Literal[0, 1]] = None

    model_config = {"str_strip_whitespace": True}


class UsuarioResumo(BaseModel):
    id: int
    nome: str
    usuario_rede: str

    model_config = {"from_attributes": True}


class UsuarioOut(UsuarioResumo):
    perfil: PerfilLiteral
    status_usuario: int
    created_at: datetime
