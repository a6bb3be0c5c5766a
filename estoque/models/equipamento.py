from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from ..core.equipment_status import STATUS_NO_DEPOSITO
from ..db.session import Base
from ._time import utcnow

_ACTIVE_ROWS = text("status != 'DESCARTADO'")


class Equipamento(Base):
    """A tracked asset.

    ``status`` only changes through a movement or a discard. Serial numbers
    are unique among rows that are not ``DESCARTADO``, so a retired item's
    serial can be registered again.
    """

    __tablename__ = "equipamentos"
    __allow_unmapped__ = True
    __table_args__ = (
        CheckConstraint(
            "status IN ('NO_DEPOSITO', 'FORA_DEPOSITO', 'DESCARTADO')",
            name="ck_equipamentos_status",
        ),
        Index(
            "uq_equipamentos_numero_serie_ativo",
            "numero_serie",
            unique=True,
            sqlite_where=_ACTIVE_ROWS,
            postgresql_where=_ACTIVE_ROWS,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    modelo = Column(String(255), nullable=False)
    numero_serie = Column(String(255), nullable=False, index=True)
    patrimonio = Column(String(50), nullable=True)
    local = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_NO_DEPOSITO, index=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    usuario = relationship("Usuario", lazy="joined")

    # Filled by the listing/detail helpers, not persisted.
    ultima_observacao: str | None = None
    movimentacoes_recentes: list | None = None

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Equipamento id={self.id} numero_serie={self.numero_serie!r} status={self.status}>"
