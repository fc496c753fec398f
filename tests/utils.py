"""Construtores de regras e agentes usados nos testes."""

from typing import List, Optional

from assignment_engine.domain.entities import Agent, AssignmentRule

TENANT = "org-1"
OTHER_TENANT = "org-2"


def make_agent(agent_id: str, active: bool = True, tenant_id: str = TENANT) -> Agent:
    return Agent(tenant_id=tenant_id, id=agent_id, name=agent_id, active=active)


def make_agents(*agent_ids: str, tenant_id: str = TENANT) -> List[Agent]:
    return [make_agent(agent_id, tenant_id=tenant_id) for agent_id in agent_ids]


def make_rule(
    strategy: str,
    config: dict,
    priority: int = 100,
    conditions: Optional[list] = None,
    enabled: bool = True,
    module_target: str = "leads",
    tenant_id: str = TENANT,
    rule_id: Optional[int] = None,
    name: Optional[str] = None,
) -> AssignmentRule:
    return AssignmentRule(
        id=rule_id,
        tenant_id=tenant_id,
        name=name or f"{strategy} p{priority}",
        module_target=module_target,
        enabled=enabled,
        priority=priority,
        strategy=strategy,
        config=config,
        conditions=conditions or [],
    )


def round_robin(*agent_ids: str, **kwargs) -> AssignmentRule:
    return make_rule("round_robin", {"agent_ids": list(agent_ids)}, **kwargs)


def least_loaded(*agent_ids: str, **kwargs) -> AssignmentRule:
    return make_rule("least_loaded", {"agent_ids": list(agent_ids)}, **kwargs)


def territory(field: str, territories: dict, fallback_agent_id: Optional[str] = None, **kwargs) -> AssignmentRule:
    config = {"field": field, "territories": territories}
    if fallback_agent_id:
        config["fallback_agent_id"] = fallback_agent_id
    return make_rule("territory", config, **kwargs)


def fixed(agent_id: str, **kwargs) -> AssignmentRule:
    return make_rule("fixed", {"agent_id": agent_id}, **kwargs)


def condition(field: str, operator: str, value=None) -> dict:
    return {"field": field, "operator": operator, "value": value}
