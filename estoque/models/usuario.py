from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text

from ..db.session import Base
from ._time import utcnow

PERFIL_USUARIO = "USUARIO"
PERFIL_ADMIN = "ADMIN"
PERFIL_CHOICES = (PERFIL_USUARIO, PERFIL_ADMIN)

STATUS_ATIVO = 1
STATUS_INATIVO = 0


class Usuario(Base):
    __tablename__ = "usuarios"
    __table_args__ = (
        CheckConstraint("perfil IN ('USUARIO', 'ADMIN')", name="ck_usuarios_perfil"),
    )

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    usuario_rede = Column(String(150), nullable=False, unique=True)
    senha_hash = Column(Text, nullable=False)
    status_usuario = Column(Integer, nullable=False, default=STATUS_ATIVO)
    perfil = Column(String(20), nullable=False, default=PERFIL_USUARIO)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status_usuario == STATUS_ATIVO

    @property
    def is_admin(self) -> bool:
        return self.perfil == PERFIL_ADMIN

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Usuario id={self.id} usuario_rede={self.usuario_rede!r} perfil={self.perfil}>"
