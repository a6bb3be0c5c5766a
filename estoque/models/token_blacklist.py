from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, Text

from ..db.session import Base
from ._time import utcnow


class TokenBlacklist(Base):
    """Revoked (logged-out) tokens, looked up by exact match.

    Rows are never pruned; an expired entry is harmless.
    """

    __tablename__ = "token_blacklist"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(Text, nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
