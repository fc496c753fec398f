"""
STORE EM MEMÓRIA
================

Mesmo contrato do store SQL, com o compare-and-swap protegido por asyncio.Lock.
Para produção com múltiplas instâncias, usar SqlAssignmentStore.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from assignment_engine.domain.decision import CursorAdvance, CursorState
from assignment_engine.domain.entities import Agent, AssignmentRule, RecordAssignment
from assignment_engine.domain.exceptions import DuplicateDecisionError

from .interface import AssignmentStore


class InMemoryAssignmentStore(AssignmentStore):
    """Store em memória."""

    def __init__(
        self,
        rules: Iterable[AssignmentRule] = (),
        agents: Iterable[Agent] = (),
    ):
        self._rules: List[AssignmentRule] = []
        self._agents: List[Agent] = []

        # Cursores: {(rule_id, bucket): CursorState}
        self._cursors: Dict[Tuple[int, str], CursorState] = {}

        self._decisions: List[RecordAssignment] = []
        self._next_rule_id = 1

        # Lock para o compare-and-swap + gravação da decisão
        self._lock = asyncio.Lock()

        for rule in rules:
            self.add_rule(rule)
        for agent in agents:
            self.add_agent(agent)

    # ==========================================
    # CONFIGURAÇÃO (fora do contrato do motor)
    # ==========================================

    def add_rule(self, rule: AssignmentRule) -> AssignmentRule:
        """Registra a regra; sem id, recebe o próximo (ordem de criação)."""
        if rule.id is None:
            rule.id = self._next_rule_id
        self._next_rule_id = max(self._next_rule_id, rule.id) + 1
        self._rules.append(rule)
        return rule

    def add_agent(self, agent: Agent) -> Agent:
        self._agents.append(agent)
        return agent

    @property
    def decisions(self) -> List[RecordAssignment]:
        return list(self._decisions)

    # ==========================================
    # CONTRATO DO MOTOR
    # ==========================================

    async def load_rules(self, tenant_id: str, module_target: Optional[str] = None) -> List[AssignmentRule]:
        return [
            rule for rule in self._rules
            if rule.tenant_id == tenant_id
            and rule.enabled
            and (module_target is None or rule.module_target == module_target)
        ]

    async def load_roster(self, tenant_id: str) -> List[Agent]:
        return [agent for agent in self._agents if agent.tenant_id == tenant_id]

    async def read_cursor(self, rule_id: int, bucket: str) -> CursorState:
        return self._cursors.get((rule_id, bucket), CursorState())

    async def peek_cursor(self, rule_id: int, bucket: str) -> CursorState:
        return self._cursors.get((rule_id, bucket), CursorState())

    async def commit_assignment(
        self,
        entry: RecordAssignment,
        advance: Optional[CursorAdvance] = None,
    ) -> bool:
        async with self._lock:
            if entry.idempotency_key is not None:
                if self._find(entry.tenant_id, entry.idempotency_key) is not None:
                    raise DuplicateDecisionError(entry.tenant_id, entry.idempotency_key)

            if advance is not None:
                key = (advance.rule_id, advance.bucket)
                current = self._cursors.get(key, CursorState())
                if current.version != advance.expected_version:
                    return False
                self._cursors[key] = CursorState(
                    position=advance.new_position,
                    version=advance.new_version,
                )

            entry.id = len(self._decisions) + 1
            if entry.assigned_at is None:
                entry.assigned_at = datetime.now(timezone.utc)
            self._decisions.append(entry)
            return True

    async def find_decision(self, tenant_id: str, idempotency_key: str) -> Optional[RecordAssignment]:
        return self._find(tenant_id, idempotency_key)

    def _find(self, tenant_id: str, idempotency_key: str) -> Optional[RecordAssignment]:
        for entry in self._decisions:
            if entry.tenant_id == tenant_id and entry.idempotency_key == idempotency_key:
                return entry
        return None
