"""
RESOLUÇÃO DE CANDIDATOS
=======================

Monta, para a regra escolhida, a lista de agentes elegíveis:
só ativos, na ordem configurada (a ordem relativa dos que sobram não muda).

Pool vazio não é exceção: vira decisão sem agente ("no_candidates"),
e o registro fica parado aguardando atribuição manual.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..decision import CandidatePool
from ..entities import Agent, AssignmentRule
from ..exceptions import ConfigurationError, report_configuration_error
from ..strategy_config import FixedConfig, LeastLoadedConfig, RoundRobinConfig, TerritoryConfig
from .condition_matcher import is_empty_value, read_field, to_text

logger = logging.getLogger(__name__)

# Chave do cursor de uma regra de rodízio comum
DEFAULT_CURSOR_BUCKET = ""


def active_agents_by_id(roster: Iterable[Agent]) -> Dict[str, Agent]:
    return {agent.id: agent for agent in roster if agent.active}


def filter_active(agent_ids: List[str], active_by_id: Mapping[str, Agent]) -> List[Agent]:
    """
    Interseção com os ativos mantendo a ordem configurada.

    Id repetido na configuração conta uma vez só (primeira ocorrência).
    """
    seen = set()
    agents = []
    for agent_id in agent_ids:
        if agent_id in active_by_id and agent_id not in seen:
            seen.add(agent_id)
            agents.append(active_by_id[agent_id])
    return agents


def _resolve_territory(
    rule: AssignmentRule,
    config: TerritoryConfig,
    record: Mapping[str, Any],
    active_by_id: Mapping[str, Agent],
    tenant_id: Optional[str],
) -> CandidatePool:
    raw = read_field(record, config.field)

    if is_empty_value(raw):
        report_configuration_error(
            logger,
            ConfigurationError(
                f"Campo de território '{config.field}' ausente no registro",
                rule_id=rule.id,
                reason="territory_field_missing",
            ),
            tenant_id=tenant_id,
        )
        value, reason = None, "territory_field_missing"
    else:
        value, reason = to_text(raw), "territory_unmapped"

    # Casamento exato: sem prefixo, sem hierarquia
    bucket_ids = config.territories.get(value) if value is not None else None

    if bucket_ids is None:
        if config.fallback_agent_id:
            fallback = active_by_id.get(config.fallback_agent_id)
            if fallback is not None:
                return CandidatePool(agents=[fallback], bucket=value, reason="territory_fallback")
            return CandidatePool(bucket=value, reason="fallback_agent_inactive")
        return CandidatePool(bucket=value, reason=reason)

    agents = filter_active(bucket_ids, active_by_id)
    if not agents:
        return CandidatePool(bucket=value, reason="no_active_agents")

    # Bucket com vários agentes vira um sub-rodízio com cursor próprio
    cursor_bucket = value if len(agents) > 1 else None
    return CandidatePool(agents=agents, bucket=value, cursor_bucket=cursor_bucket)


def resolve_candidates(
    rule: AssignmentRule,
    record: Mapping[str, Any],
    roster: Iterable[Agent],
    tenant_id: Optional[str] = None,
) -> CandidatePool:
    """
    Resolve o pool de candidatos da regra para este registro.

    Returns:
        CandidatePool; vazio (com `reason`) quando ninguém é elegível
    """
    try:
        config = rule.strategy_config()
    except ConfigurationError as e:
        report_configuration_error(logger, e, tenant_id=tenant_id)
        return CandidatePool(reason=e.reason)

    active_by_id = active_agents_by_id(roster)

    if isinstance(config, RoundRobinConfig):
        agents = filter_active(config.agent_ids, active_by_id)
        return CandidatePool(
            agents=agents,
            cursor_bucket=DEFAULT_CURSOR_BUCKET,
            reason=None if agents else "no_active_agents",
        )

    if isinstance(config, LeastLoadedConfig):
        agents = filter_active(config.agent_ids, active_by_id)
        return CandidatePool(agents=agents, reason=None if agents else "no_active_agents")

    if isinstance(config, FixedConfig):
        agent = active_by_id.get(config.agent_id)
        if agent is None:
            return CandidatePool(reason="fixed_agent_inactive")
        return CandidatePool(agents=[agent])

    return _resolve_territory(rule, config, record, active_by_id, tenant_id)
