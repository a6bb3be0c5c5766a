"""SQLAlchemy models. Importing this package registers every table on ``Base.metadata``."""

from .usuario import Usuario  # noqa: F401
from .equipamento import Equipamento  # noqa: F401
from .movimentacao import Movimentacao  # noqa: F401
from .historico import HistoricoEquipamento  # noqa: F401
from .token_blacklist import TokenBlacklist  # noqa: F401

__all__ = [
    "Equipamento",
    "HistoricoEquipamento",
    "Movimentacao",
    "TokenBlacklist",
    "Usuario",
]
