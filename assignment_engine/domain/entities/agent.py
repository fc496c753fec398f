"""
MODELO: AGENTE (AGENT)
======================

Membro da equipe que pode ser dono de registros.
Só agentes ativos são candidatos, qualquer que seja a estratégia.
"""

from typing import Optional
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Agent(Base, TimestampMixin):
    """Agente do roster do tenant."""

    __tablename__ = "agents"

    # Identificador opaco vindo da gestão de usuários (único por tenant)
    tenant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __init__(self, **kwargs):
        kwargs.setdefault("active", True)
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<Agent id={self.id!r} active={self.active}>"
