"""
MODELO: CURSOR DE RODÍZIO (RULE CURSOR)
=======================================

Estado persistido do round robin, uma linha por (regra, bucket).
Único dado que o motor escreve nas regras: sempre via compare-and-swap
sobre `version`, nunca como variável em memória do processo.
"""

from sqlalchemy import String, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class RuleCursor(Base, TimestampMixin):
    """
    Próximo índice a receber atribuição.

    bucket = "" para regra de rodízio comum; valor do território quando o
    bucket tem vários agentes.
    """

    __tablename__ = "rule_cursors"
    __table_args__ = (
        UniqueConstraint("rule_id", "bucket", name="uq_rule_cursors_rule_bucket"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    rule_id: Mapped[int] = mapped_column(
        ForeignKey("assignment_rules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    bucket: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    # Índice do próximo agente na lista filtrada (ativos, ordem configurada)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Incrementa a cada avanço confirmado; token do compare-and-swap
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    rule: Mapped["AssignmentRule"] = relationship(back_populates="cursors")
