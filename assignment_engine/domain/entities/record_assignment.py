"""
MODELO: ATRIBUIÇÃO DE REGISTRO (RECORD ASSIGNMENT)
==================================================

Decisão do motor gravada na mesma transação do avanço do cursor.
Importante para:
- Auditoria (quem recebeu o quê, por qual regra)
- Retentativas seguras (chave de idempotência)
- Verificar a sequência do rodízio (cursor_index / cursor_version)
"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, ForeignKey, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordAssignment(Base):
    """Registro de uma decisão em que alguma regra casou."""

    __tablename__ = "record_assignments"
    __table_args__ = (
        UniqueConstraint("tenant_id", "idempotency_key", name="uq_record_assignments_idempotency"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # ==========================================
    # REFERÊNCIAS
    # ==========================================
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    module_target: Mapped[str] = mapped_column(String(50), nullable=False)
    record_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    rule_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("assignment_rules.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # Sem FK: o agente pode ser removido do roster depois
    agent_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    # ==========================================
    # DETALHES DA DECISÃO
    # ==========================================
    strategy: Mapped[str] = mapped_column(String(20), nullable=False)
    # assigned, no_candidates
    outcome: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bucket: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Índice entregue pelo rodízio e versão do cursor gerada pelo avanço
    cursor_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cursor_version: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    idempotency_key: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False
    )
