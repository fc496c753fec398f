"""
TESTES - API
============

Rotas de regras, agentes, atribuição e pré-visualização sobre SQLite.
"""

import pytest

from tests.utils import OTHER_TENANT

RULES = "/api/v1/assignment-rules"
AGENTS = "/api/v1/agents"
ASSIGN = "/api/v1/assignments"


async def create_agents(client, *agent_ids):
    for agent_id in agent_ids:
        response = await client.post(AGENTS, json={"id": agent_id, "name": agent_id})
        assert response.status_code == 201


async def create_rule(client, **payload):
    payload.setdefault("name", f"{payload['strategy']} rule")
    response = await client.post(RULES, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# HEALTH / TENANT
# =============================================================================

@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_missing_tenant_header_is_rejected(client):
    response = await client.get(RULES, headers={"X-Tenant-Id": ""})

    assert response.status_code == 400


# =============================================================================
# REGRAS
# =============================================================================

@pytest.mark.asyncio
async def test_rule_crud(client):
    rule = await create_rule(
        client,
        strategy="round_robin",
        priority=10,
        config={"agent_ids": ["agentA", "agentB"]},
        conditions=[{"field": "state", "operator": "equals", "value": "CA"}],
    )

    assert rule["enabled"] is True
    assert rule["module_target"] == "leads"
    assert rule["conditions"] == [{"field": "state", "operator": "equals", "value": "CA"}]

    response = await client.patch(f"{RULES}/{rule['id']}", json={"priority": 1, "name": "Califórnia"})
    assert response.status_code == 200
    assert response.json()["priority"] == 1
    assert response.json()["name"] == "Califórnia"

    response = await client.post(f"{RULES}/{rule['id']}/toggle")
    assert response.json()["enabled"] is False

    response = await client.delete(f"{RULES}/{rule['id']}")
    assert response.status_code == 204

    response = await client.get(f"{RULES}/{rule['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rules_listed_in_evaluation_order(client):
    await create_rule(client, name="b", strategy="fixed", priority=5, config={"agent_id": "agentA"})
    await create_rule(client, name="a", strategy="fixed", priority=1, config={"agent_id": "agentA"})
    await create_rule(client, name="c", strategy="fixed", priority=5, config={"agent_id": "agentA"})

    response = await client.get(RULES)

    assert [r["name"] for r in response.json()] == ["a", "b", "c"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"strategy": "round_robin", "config": {"agent_ids": []}},
        {"strategy": "fixed", "config": {"agent_ids": ["agentA"]}},
        {"strategy": "territory", "config": {"territories": {"CA": ["agentA"]}}},
        {"strategy": "weighted", "config": {}},
        {
            "strategy": "fixed",
            "config": {"agent_id": "agentA"},
            "conditions": [{"field": "state", "operator": "like", "value": "C"}],
        },
    ],
)
async def test_invalid_rule_payload_is_422(client, payload):
    response = await client.post(RULES, json={"name": "inválida", **payload})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_changing_strategy_requires_matching_config(client):
    rule = await create_rule(client, strategy="fixed", config={"agent_id": "agentA"})

    response = await client.patch(f"{RULES}/{rule['id']}", json={"strategy": "round_robin"})
    assert response.status_code == 422

    response = await client.patch(
        f"{RULES}/{rule['id']}",
        json={"strategy": "round_robin", "config": {"agent_ids": ["agentA"]}},
    )
    assert response.status_code == 200
    assert response.json()["strategy"] == "round_robin"


@pytest.mark.asyncio
async def test_rules_are_isolated_by_tenant(client):
    rule = await create_rule(client, strategy="fixed", config={"agent_id": "agentA"})

    response = await client.get(f"{RULES}/{rule['id']}", headers={"X-Tenant-Id": OTHER_TENANT})
    assert response.status_code == 404

    response = await client.get(RULES, headers={"X-Tenant-Id": OTHER_TENANT})
    assert response.json() == []


# =============================================================================
# AGENTES
# =============================================================================

@pytest.mark.asyncio
async def test_agent_roster(client):
    await create_agents(client, "agentA", "agentB")

    response = await client.post(AGENTS, json={"id": "agentA"})
    assert response.status_code == 409

    response = await client.patch(f"{AGENTS}/agentB", json={"active": False})
    assert response.status_code == 200
    assert response.json()["active"] is False

    response = await client.get(AGENTS, params={"active": True})
    assert [a["id"] for a in response.json()] == ["agentA"]

    response = await client.patch(f"{AGENTS}/ghost", json={"active": False})
    assert response.status_code == 404


# =============================================================================
# ATRIBUIÇÃO
# =============================================================================

@pytest.mark.asyncio
async def test_assign_round_robin_and_replay(client):
    await create_agents(client, "agentA", "agentB")
    await create_rule(client, strategy="round_robin", config={"agent_ids": ["agentA", "agentB"]})

    first = await client.post(ASSIGN, json={"module_target": "leads", "record": {"id": "1"}, "idempotency_key": "1"})
    second = await client.post(ASSIGN, json={"module_target": "leads", "record": {"id": "2"}, "idempotency_key": "2"})
    replay = await client.post(ASSIGN, json={"module_target": "leads", "record": {"id": "1"}, "idempotency_key": "1"})

    assert first.status_code == 200
    assert first.json()["agent_id"] == "agentA"
    assert first.json()["outcome"] == "assigned"
    assert second.json()["agent_id"] == "agentB"
    assert replay.json()["agent_id"] == "agentA"
    assert replay.json()["replayed"] is True


@pytest.mark.asyncio
async def test_assign_without_matching_rule(client):
    await create_agents(client, "agentA")
    await create_rule(
        client,
        strategy="fixed",
        config={"agent_id": "agentA"},
        conditions=[{"field": "state", "operator": "equals", "value": "CA"}],
    )

    response = await client.post(ASSIGN, json={"module_target": "leads", "record": {"state": "NY"}})

    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "no_rule_matched"
    assert body["rule_id"] is None
    assert body["agent_id"] is None


@pytest.mark.asyncio
async def test_assign_least_loaded_with_loads(client):
    await create_agents(client, "agentA", "agentB")
    await create_rule(client, strategy="least_loaded", config={"agent_ids": ["agentA", "agentB"]})

    response = await client.post(
        ASSIGN,
        json={"module_target": "leads", "record": {}, "loads": {"agentA": 3, "agentB": 1}},
    )

    assert response.json()["agent_id"] == "agentB"


# =============================================================================
# PRÉ-VISUALIZAÇÃO
# =============================================================================

@pytest.mark.asyncio
async def test_preview_does_not_advance_cursor(client):
    await create_agents(client, "agentA", "agentB", "agentC")
    rule = await create_rule(client, strategy="round_robin", config={"agent_ids": ["agentA", "agentB", "agentC"]})

    for _ in range(2):
        response = await client.post(f"{RULES}/{rule['id']}/preview", json={"record": {}})
        assert response.json()["agent_id"] == "agentA"
        assert response.json()["dry_run"] is True

    response = await client.get(f"{RULES}/{rule['id']}/round-robin-preview", params={"count": 4})
    assert response.json() == {"rule_id": rule["id"], "agent_ids": ["agentA", "agentB", "agentC", "agentA"]}

    await client.post(ASSIGN, json={"module_target": "leads", "record": {}})

    response = await client.get(f"{RULES}/{rule['id']}/round-robin-preview", params={"count": 2})
    assert response.json()["agent_ids"] == ["agentB", "agentC"]


@pytest.mark.asyncio
async def test_preview_territory_reports_reason(client):
    await create_agents(client, "agentA")
    rule = await create_rule(
        client,
        strategy="territory",
        config={"field": "state", "territories": {"CA": ["agentA"]}},
    )

    response = await client.post(f"{RULES}/{rule['id']}/preview", json={"record": {"state": "TX"}})

    body = response.json()
    assert body["outcome"] == "no_candidates"
    assert body["reason"] == "territory_unmapped"
    assert body["bucket"] == "TX"
