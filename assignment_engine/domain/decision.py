"""
TIPOS DE DECISÃO
================

Estruturas trocadas entre os estágios do motor:
resolução de candidatos -> despacho da estratégia -> decisão final.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from .entities import Agent, DecisionOutcome, RecordAssignment


@dataclass(frozen=True)
class CursorState:
    """Leitura do cursor persistido de um (regra, bucket)."""
    position: int = 0
    version: int = 0


@dataclass(frozen=True)
class CursorAdvance:
    """
    Mutação produzida pelo round robin.

    Só é aplicada se a versão gravada ainda for `expected_version`.
    """
    rule_id: int
    bucket: str
    expected_version: int
    index: int
    new_position: int

    @property
    def new_version(self) -> int:
        return self.expected_version + 1


@dataclass
class CandidatePool:
    """
    Agentes elegíveis para uma regra, já filtrados para ativos e na ordem configurada.

    Attributes:
        agents: candidatos na ordem determinística de despacho
        bucket: valor de território casado (só estratégia territory)
        cursor_bucket: chave do cursor a usar; None quando não há rodízio
        reason: motivo de um pool vazio (ou do uso do fallback)
    """
    agents: List[Agent] = field(default_factory=list)
    bucket: Optional[str] = None
    cursor_bucket: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.agents

    @property
    def agent_ids(self) -> List[str]:
        return [agent.id for agent in self.agents]


@dataclass(frozen=True)
class DispatchResult:
    """Agente escolhido e, no rodízio, o avanço de cursor a persistir."""
    agent: Agent
    cursor_advance: Optional[CursorAdvance] = None


@dataclass
class AssignmentDecision:
    """
    Saída do motor. Aplicar o dono no registro é responsabilidade de quem chamou.

    Attributes:
        rule_id: regra que decidiu (None = nenhuma regra casou)
        agent_id: agente escolhido (None = sem atribuição)
        strategy: estratégia da regra usada
        outcome: assigned | no_rule_matched | no_candidates
        reason: detalhe legível por máquina (ex: "territory_unmapped")
        bucket: território casado, quando houver
        cursor_index: índice entregue pelo rodízio
        dry_run: veio de uma pré-visualização (nada foi persistido)
        replayed: devolvida de uma decisão já gravada (idempotência)
    """
    rule_id: Optional[int]
    agent_id: Optional[str]
    strategy: Optional[str]
    outcome: DecisionOutcome
    reason: Optional[str] = None
    bucket: Optional[str] = None
    cursor_index: Optional[int] = None
    dry_run: bool = False
    replayed: bool = False

    @property
    def assigned(self) -> bool:
        return self.outcome == DecisionOutcome.ASSIGNED

    @classmethod
    def no_rule_matched(cls, dry_run: bool = False) -> "AssignmentDecision":
        return cls(
            rule_id=None,
            agent_id=None,
            strategy=None,
            outcome=DecisionOutcome.NO_RULE_MATCHED,
            dry_run=dry_run,
        )

    @classmethod
    def from_record(cls, entry: RecordAssignment, replayed: bool = False) -> "AssignmentDecision":
        return cls(
            rule_id=entry.rule_id,
            agent_id=entry.agent_id,
            strategy=entry.strategy,
            outcome=DecisionOutcome(entry.outcome),
            reason=entry.reason,
            bucket=entry.bucket,
            cursor_index=entry.cursor_index,
            replayed=replayed,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        return data
