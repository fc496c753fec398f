"""Schemas compartilhados entre as rotas."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from assignment_engine.domain.decision import AssignmentDecision


class DecisionResponse(BaseModel):
    """Decisão do motor."""
    rule_id: Optional[int]
    agent_id: Optional[str]
    strategy: Optional[str]
    outcome: str
    reason: Optional[str] = None
    bucket: Optional[str] = None
    cursor_index: Optional[int] = None
    dry_run: bool = False
    replayed: bool = False

    @classmethod
    def from_decision(cls, decision: AssignmentDecision) -> "DecisionResponse":
        return cls(**decision.to_dict())


class RecordPayload(BaseModel):
    """Registro a avaliar e, para least_loaded, a carga atual dos agentes."""
    record: Dict[str, Any] = Field(default_factory=dict)
    loads: Optional[Dict[str, int]] = None


class RoundRobinPreviewResponse(BaseModel):
    rule_id: int
    agent_ids: List[str]
