from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..db.session import Base
from ._time import utcnow

ACAO_CADASTRO = "CADASTRO"
ACAO_EDICAO = "EDICAO"
ACAO_DESCARTE = "DESCARTE"
ACAO_CHOICES = (ACAO_CADASTRO, ACAO_EDICAO, ACAO_DESCARTE)


class HistoricoEquipamento(Base):
    """Audit row written alongside equipment create/update/discard."""

    __tablename__ = "historico_equipamentos"
    __table_args__ = (
        CheckConstraint("acao IN ('CADASTRO', 'EDICAO', 'DESCARTE')", name="ck_historico_acao"),
    )

    id = Column(Integer, primary_key=True, index=True)
    equipamento_id = Column(Integer, ForeignKey("equipamentos.id"), nullable=False, index=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False)
    acao = Column(String(20), nullable=False)
    campo_alterado = Column(String(50), nullable=True)
    valor_anterior = Column(Text, nullable=True)
    valor_novo = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    usuario = relationship("Usuario", lazy="joined")
