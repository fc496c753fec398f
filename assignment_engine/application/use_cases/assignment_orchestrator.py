"""
ORQUESTRADOR DE ATRIBUIÇÃO
==========================

Ponto de entrada do motor. Para cada registro novo:

1. Seleciona a regra (primeira habilitada que casa, por prioridade)
2. Resolve os candidatos ativos da regra
3. Despacha a estratégia
4. Grava decisão + avanço do cursor numa única unidade atômica
   (compare-and-swap com retentativas limitadas)

Gravar o dono no registro é responsabilidade de quem chamou: o motor só
devolve a AssignmentDecision.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence

from assignment_engine.config import get_settings
from assignment_engine.domain.decision import (
    AssignmentDecision,
    CandidatePool,
    CursorState,
    DispatchResult,
)
from assignment_engine.domain.entities import AssignmentRule, DecisionOutcome, RecordAssignment
from assignment_engine.domain.exceptions import (
    ConfigurationError,
    CursorConflictError,
    DuplicateDecisionError,
    report_configuration_error,
)
from assignment_engine.domain.services.candidate_pool import resolve_candidates
from assignment_engine.domain.services.condition_matcher import matches, to_text
from assignment_engine.domain.services.rule_selector import select_rule
from assignment_engine.domain.services.strategy_dispatcher import dispatch, needs_cursor
from assignment_engine.domain.strategy_config import LeastLoadedConfig, RoundRobinConfig
from assignment_engine.infrastructure.stores import AssignmentStore

logger = logging.getLogger(__name__)

# (tenant_id, agent_ids) -> carga atual por agente
LoadProvider = Callable[[str, Sequence[str]], Awaitable[Mapping[str, int]]]


class AssignmentOrchestrator:
    """
    Orquestrador do motor de atribuição para um tenant.

    Examples:
        orchestrator = AssignmentOrchestrator(
            store=SqlAssignmentStore(async_session),
            tenant_id="org-1",
        )

        decision = await orchestrator.assign(
            record={"id": "lead-9", "state": "CA"},
            module_target="leads",
            idempotency_key="lead-9",
        )

        if decision.assigned:
            lead.owner_id = decision.agent_id
        elif decision.outcome == DecisionOutcome.NO_CANDIDATES:
            # Regra casou mas ninguém elegível: fica para atribuição manual
            pass
    """

    def __init__(
        self,
        store: AssignmentStore,
        tenant_id: str,
        load_provider: Optional[LoadProvider] = None,
        max_cas_attempts: Optional[int] = None,
        backoff_ms: Optional[int] = None,
    ):
        settings = get_settings()
        self.store = store
        self.tenant_id = tenant_id
        self.load_provider = load_provider
        self.max_cas_attempts = max(1, max_cas_attempts or settings.cursor_cas_max_attempts)
        self.backoff_ms = settings.cursor_cas_backoff_ms if backoff_ms is None else backoff_ms

    # ==========================================
    # ENTRADA DE PRODUÇÃO
    # ==========================================

    async def assign(
        self,
        record: Mapping[str, Any],
        module_target: str,
        loads: Optional[Mapping[str, int]] = None,
        idempotency_key: Optional[str] = None,
    ) -> AssignmentDecision:
        """
        Decide o dono de um registro novo e persiste o avanço do cursor.

        Args:
            record: campos do registro
            module_target: categoria do registro (ex: "leads")
            loads: carga atual por agente, para least_loaded
            idempotency_key: chave para retentativas seguras; se já existe
                decisão gravada com ela, essa decisão é devolvida sem novo despacho

        Raises:
            CursorConflictError: esgotou as tentativas de compare-and-swap
        """
        if idempotency_key:
            existing = await self.store.find_decision(self.tenant_id, idempotency_key)
            if existing is not None:
                logger.info(f"🔁 Decisão '{idempotency_key}' já gravada, devolvendo sem novo despacho")
                return AssignmentDecision.from_record(existing, replayed=True)

        rules = await self.store.load_rules(self.tenant_id, module_target)
        rule = select_rule(record, rules, module_target, tenant_id=self.tenant_id)

        if rule is None:
            logger.info(
                f"Nenhuma regra casou para registro de {module_target}",
                extra={"context": {"tenant_id": self.tenant_id, "record_id": _record_id(record)}},
            )
            return AssignmentDecision.no_rule_matched()

        roster = await self.store.load_roster(self.tenant_id)
        pool = resolve_candidates(rule, record, roster, tenant_id=self.tenant_id)

        if pool.is_empty:
            entry = self._build_entry(record, module_target, rule, pool, None, idempotency_key)
            return await self._commit(entry, None, rule)

        loads = await self._resolve_loads(rule, pool, loads)

        for attempt in range(1, self.max_cas_attempts + 1):
            cursor = None
            if needs_cursor(pool):
                cursor = await self.store.read_cursor(rule.id, pool.cursor_bucket)

            result = dispatch(rule, pool, cursor, loads)
            entry = self._build_entry(record, module_target, rule, pool, result, idempotency_key)

            decision = await self._commit(entry, result, rule)
            if decision is not None:
                return decision

            logger.warning(
                f"⚠️ Conflito no cursor da regra {rule.id} (tentativa {attempt}/{self.max_cas_attempts})",
                extra={"context": {"tenant_id": self.tenant_id, "rule_id": rule.id, "bucket": pool.cursor_bucket}},
            )
            await self._backoff()

        logger.error(
            f"❌ Tentativas esgotadas no cursor da regra {rule.id}",
            extra={"context": {"tenant_id": self.tenant_id, "rule_id": rule.id, "bucket": pool.cursor_bucket}},
        )
        raise CursorConflictError(rule.id, pool.cursor_bucket, self.max_cas_attempts)

    # ==========================================
    # PRÉ-VISUALIZAÇÃO (DRY-RUN)
    # ==========================================

    async def preview_assignment(
        self,
        record: Mapping[str, Any],
        rule: AssignmentRule,
        loads: Optional[Mapping[str, int]] = None,
    ) -> AssignmentDecision:
        """
        Simula uma regra isolada para o registro, sem gravar nada.

        Mesmo avaliador, resolvedor e despacho da produção; o cursor é só lido.
        A regra é simulada mesmo desabilitada.
        """
        # Mesma validação do seletor: regra mal configurada não casa
        try:
            conditions = rule.parsed_conditions()
            rule.strategy_config()
        except ConfigurationError as e:
            report_configuration_error(logger, e, tenant_id=self.tenant_id)
            return AssignmentDecision.no_rule_matched(dry_run=True)

        if not matches(record, conditions, rule_id=rule.id, tenant_id=self.tenant_id):
            return AssignmentDecision.no_rule_matched(dry_run=True)

        roster = await self.store.load_roster(self.tenant_id)
        pool = resolve_candidates(rule, record, roster, tenant_id=self.tenant_id)

        if pool.is_empty:
            return self._decision(rule, pool, None, dry_run=True)

        loads = await self._resolve_loads(rule, pool, loads)
        cursor = await self._peek(rule, pool)
        result = dispatch(rule, pool, cursor, loads)
        return self._decision(rule, pool, result, dry_run=True)

    async def preview_round_robin(self, rule: AssignmentRule, count: Optional[int] = None) -> List[str]:
        """
        Próximos `count` agentes que um rodízio entregaria a partir do cursor atual.

        Só leitura. Regra que não é round_robin (ou sem ativos) devolve lista vazia.
        """
        count = get_settings().preview_default_count if count is None else count

        try:
            config = rule.strategy_config()
        except ConfigurationError as e:
            report_configuration_error(logger, e, tenant_id=self.tenant_id)
            return []

        if not isinstance(config, RoundRobinConfig) or count <= 0:
            return []

        roster = await self.store.load_roster(self.tenant_id)
        pool = resolve_candidates(rule, {}, roster, tenant_id=self.tenant_id)
        if pool.is_empty:
            return []

        cursor = await self._peek(rule, pool)
        size = len(pool.agents)
        start = cursor.position % size
        return [pool.agents[(start + offset) % size].id for offset in range(count)]

    # ==========================================
    # AUXILIARES
    # ==========================================

    async def _peek(self, rule: AssignmentRule, pool: CandidatePool) -> Optional[CursorState]:
        if not needs_cursor(pool):
            return None
        # Regra ainda não salva não tem cursor
        if rule.id is None:
            return CursorState()
        return await self.store.peek_cursor(rule.id, pool.cursor_bucket)

    async def _resolve_loads(
        self,
        rule: AssignmentRule,
        pool: CandidatePool,
        loads: Optional[Mapping[str, int]],
    ) -> Optional[Mapping[str, int]]:
        if not isinstance(rule.strategy_config(), LeastLoadedConfig):
            return loads
        if loads is not None:
            return loads
        if self.load_provider is None:
            logger.warning(f"⚠️ Regra {rule.id} é least_loaded mas nenhuma carga foi informada")
            return {}
        return await self.load_provider(self.tenant_id, pool.agent_ids)

    async def _commit(
        self,
        entry: RecordAssignment,
        result: Optional[DispatchResult],
        rule: AssignmentRule,
    ) -> Optional[AssignmentDecision]:
        """Grava a decisão; None quando o compare-and-swap perdeu a corrida."""
        advance = result.cursor_advance if result is not None else None
        try:
            committed = await self.store.commit_assignment(entry, advance)
        except DuplicateDecisionError:
            # Outra chamada com a mesma chave gravou primeiro
            existing = await self.store.find_decision(self.tenant_id, entry.idempotency_key)
            if existing is None:
                raise
            logger.info(f"🔁 Decisão '{entry.idempotency_key}' gravada por chamada concorrente")
            return AssignmentDecision.from_record(existing, replayed=True)

        if not committed:
            return None

        decision = AssignmentDecision.from_record(entry)
        if decision.assigned:
            logger.info(
                f"✅ Registro atribuído para {decision.agent_id} pela regra {rule.id} ({rule.strategy})",
                extra={"context": {"tenant_id": self.tenant_id, "decision": decision.to_dict()}},
            )
        else:
            logger.info(
                f"Regra {rule.id} casou mas sem candidatos ({decision.reason}) - registro sem dono",
                extra={"context": {"tenant_id": self.tenant_id, "decision": decision.to_dict()}},
            )
        return decision

    def _build_entry(
        self,
        record: Mapping[str, Any],
        module_target: str,
        rule: AssignmentRule,
        pool: CandidatePool,
        result: Optional[DispatchResult],
        idempotency_key: Optional[str],
    ) -> RecordAssignment:
        advance = result.cursor_advance if result is not None else None
        return RecordAssignment(
            tenant_id=self.tenant_id,
            module_target=module_target,
            record_id=_record_id(record),
            rule_id=rule.id,
            agent_id=result.agent.id if result is not None else None,
            strategy=rule.strategy,
            outcome=(DecisionOutcome.ASSIGNED if result is not None else DecisionOutcome.NO_CANDIDATES).value,
            reason=pool.reason,
            bucket=pool.bucket,
            cursor_index=advance.index if advance is not None else None,
            cursor_version=advance.new_version if advance is not None else None,
            idempotency_key=idempotency_key,
        )

    def _decision(
        self,
        rule: AssignmentRule,
        pool: CandidatePool,
        result: Optional[DispatchResult],
        dry_run: bool = False,
    ) -> AssignmentDecision:
        advance = result.cursor_advance if result is not None else None
        return AssignmentDecision(
            rule_id=rule.id,
            agent_id=result.agent.id if result is not None else None,
            strategy=rule.strategy,
            outcome=DecisionOutcome.ASSIGNED if result is not None else DecisionOutcome.NO_CANDIDATES,
            reason=pool.reason,
            bucket=pool.bucket,
            cursor_index=advance.index if advance is not None else None,
            dry_run=dry_run,
        )

    async def _backoff(self) -> None:
        if self.backoff_ms > 0:
            await asyncio.sleep(random.uniform(0, self.backoff_ms) / 1000)


def _record_id(record: Mapping[str, Any]) -> Optional[str]:
    value = record.get("id") if record else None
    return to_text(value) if value is not None else None
