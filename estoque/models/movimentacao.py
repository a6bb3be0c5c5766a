from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..db.session import Base
from ._time import utcnow


class Movimentacao(Base):
    """Append-only ledger entry: equipment leaving (SAIDA) or returning (ENTRADA)."""

    __tablename__ = "movimentacoes"
    __table_args__ = (
        CheckConstraint("tipo IN ('ENTRADA', 'SAIDA')", name="ck_movimentacoes_tipo"),
    )

    id = Column(Integer, primary_key=True, index=True)
    equipamento_id = Column(Integer, ForeignKey("equipamentos.id"), nullable=False, index=True)
    tipo = Column(String(10), nullable=False)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    observacao = Column(Text, nullable=True)
    data_movimentacao = Column(DateTime, nullable=False, default=utcnow, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    equipamento = relationship("Equipamento", lazy="joined")
    usuario = relationship("Usuario", lazy="joined")
