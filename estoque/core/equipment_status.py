"""Equipment lifecycle states and the movement transition table."""

from __future__ import annotations

from .errors import AppError, ErrorKind

STATUS_NO_DEPOSITO = "NO_DEPOSITO"
STATUS_FORA_DEPOSITO = "FORA_DEPOSITO"
STATUS_DESCARTADO = "DESCARTADO"

STATUS_CHOICES = (
    STATUS_NO_DEPOSITO,
    STATUS_FORA_DEPOSITO,
    STATUS_DESCARTADO,
)

# Statuses a listing may filter on; DESCARTADO rows never appear in listings.
ACTIVE_STATUSES = (STATUS_NO_DEPOSITO, STATUS_FORA_DEPOSITO)

MOVEMENT_ENTRADA = "ENTRADA"
MOVEMENT_SAIDA = "SAIDA"
MOVEMENT_CHOICES = (MOVEMENT_ENTRADA, MOVEMENT_SAIDA)

# movement type -> (required current status, resulting status)
TRANSITIONS: dict[str, tuple[str, str]] = {
    MOVEMENT_SAIDA: (STATUS_NO_DEPOSITO, STATUS_FORA_DEPOSITO),
    MOVEMENT_ENTRADA: (STATUS_FORA_DEPOSITO, STATUS_NO_DEPOSITO),
}

DISCARDED_MESSAGE = "Não é possível movimentar equipamento descartado"


def resolve_transition(current: str, tipo: str) -> str:
    """Return the status an equipment moves to, or raise when the move is illegal.

    ``DESCARTADO`` is terminal and gets its own error so callers can tell a
    retired item apart from one that is simply in the wrong place.
    """

    if tipo not in TRANSITIONS:
        raise AppError(ErrorKind.VALIDATION, "Tipo deve ser ENTRADA ou SAIDA")
    if current == STATUS_DESCARTADO:
        raise AppError(ErrorKind.DISCARDED_EQUIPMENT, DISCARDED_MESSAGE)
    required, target = TRANSITIONS[tipo]
    if current != required:
        raise AppError(
            ErrorKind.INVALID_TRANSITION,
            f"Equipamento deve estar {required} para realizar {tipo}",
        )
    return target


__all__ = [
    "ACTIVE_STATUSES",
    "DISCARDED_MESSAGE",
    "MOVEMENT_CHOICES",
    "MOVEMENT_ENTRADA",
    "MOVEMENT_SAIDA",
    "STATUS_CHOICES",
    "STATUS_DESCARTADO",
    "STATUS_FORA_DEPOSITO",
    "STATUS_NO_DEPOSITO",
    "TRANSITIONS",
    "resolve_transition",
]
