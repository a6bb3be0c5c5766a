from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .usuario import UsuarioOut


class LoginRequest(BaseModel):
    # Blank or missing credentials are reported by the login service itself.
    usuario_rede: Optional[str] = None
    senha: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {"usuario_rede": "admin", "senha": "senha123"}
        },
    }


class LoginResponse(BaseModel):
    token: str
    usuario: UsuarioOut

    model_config = {
        "json_schema_extra": {
            "example": {
                "token": "<jwt>",
                "usuario": {
                    "id": 1,
                    "nome": "Administrador Sistema",
                    "usuario_rede": "admin",
                    "perfil": "ADMIN",
                    "status_usuario": 1,
                    "created_at": "2024-01-01T00:00:00",
                },
            }
        }
    }
