"""
MODELO: REGRA DE ATRIBUIÇÃO (ASSIGNMENT RULE)
=============================================

Política configurada pelo gestor que decide quem recebe cada registro novo.
O motor só lê a regra; o único estado mutável (cursor do rodízio) fica em
RuleCursor.
"""

from typing import List, Optional
from sqlalchemy import String, Boolean, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, JSONType


class AssignmentRule(Base, TimestampMixin):
    """
    Regra de atribuição de um tenant.

    Avaliada em ordem crescente de prioridade; empate resolvido pelo id
    (ordem de criação).
    """

    __tablename__ = "assignment_rules"
    __table_args__ = (
        Index("ix_assignment_rules_scope", "tenant_id", "module_target", "priority"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # ==========================================
    # IDENTIFICAÇÃO
    # ==========================================
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Categoria de registro: leads, members, enrollments...
    module_target: Mapped[str] = mapped_column(String(50), nullable=False, default="leads")

    # ==========================================
    # AVALIAÇÃO
    # ==========================================
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Menor valor é avaliado primeiro
    priority: Mapped[int] = mapped_column(Integer, default=100, nullable=False)

    # Lista de {"field", "operator", "value"}; todas precisam casar (AND)
    conditions: Mapped[Optional[list]] = mapped_column(JSONType, default=list)

    # ==========================================
    # ESTRATÉGIA
    # ==========================================
    # round_robin, least_loaded, territory, fixed
    strategy: Mapped[str] = mapped_column(String(20), nullable=False)

    # Payload da estratégia (validado por strategy_config)
    config: Mapped[Optional[dict]] = mapped_column(JSONType, default=dict)

    # ==========================================
    # RELACIONAMENTOS
    # ==========================================
    cursors: Mapped[List["RuleCursor"]] = relationship(
        back_populates="rule", cascade="all, delete-orphan"
    )

    # ==========================================
    # MÉTODOS ÚTEIS
    # ==========================================
    def __init__(self, **kwargs):
        # Defaults do Python valem antes do INSERT (ex: store em memória)
        kwargs.setdefault("module_target", "leads")
        kwargs.setdefault("enabled", True)
        kwargs.setdefault("priority", 100)
        kwargs.setdefault("conditions", [])
        kwargs.setdefault("config", {})
        super().__init__(**kwargs)

    def strategy_config(self):
        """Payload tipado da estratégia. Levanta ConfigurationError se inválido."""
        from assignment_engine.domain.strategy_config import parse_strategy_config
        return parse_strategy_config(self.strategy, self.config, rule_id=self.id)

    def parsed_conditions(self):
        """Condições tipadas. Levanta ConfigurationError se inválidas."""
        from assignment_engine.domain.strategy_config import parse_conditions
        return parse_conditions(self.conditions, rule_id=self.id)

    def __repr__(self) -> str:
        return f"<AssignmentRule id={self.id} name={self.name!r} strategy={self.strategy} priority={self.priority}>"
