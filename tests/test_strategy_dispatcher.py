"""
TESTES - DESPACHO DAS ESTRATÉGIAS
=================================
"""

import pytest

from assignment_engine.domain.decision import CandidatePool, CursorState
from assignment_engine.domain.services import dispatch, resolve_candidates, select_least_loaded, select_round_robin

from tests.utils import fixed, least_loaded, make_agent, make_agents, round_robin, territory


# =============================================================================
# ROUND ROBIN
# =============================================================================

def test_round_robin_cycles_through_candidates():
    agents = make_agents("agent-a", "agent-b", "agent-c")
    cursor = CursorState()
    handed_out = []

    for _ in range(7):
        result = select_round_robin(agents, cursor, rule_id=1)
        handed_out.append(result.agent.id)
        advance = result.cursor_advance
        cursor = CursorState(position=advance.new_position, version=advance.new_version)

    assert handed_out == ["agent-a", "agent-b", "agent-c", "agent-a", "agent-b", "agent-c", "agent-a"]
    assert cursor.version == 7


def test_round_robin_advance_carries_cas_token():
    result = select_round_robin(make_agents("agent-a", "agent-b"), CursorState(position=1, version=4), rule_id=9)
    advance = result.cursor_advance

    assert result.agent.id == "agent-b"
    assert advance.rule_id == 9
    assert advance.index == 1
    assert advance.new_position == 0
    assert advance.expected_version == 4
    assert advance.new_version == 5


def test_round_robin_cursor_is_clamped_when_pool_shrinks():
    """Cursor 2 gravado com 3 agentes; um foi desativado e sobraram 2."""
    roster = [make_agent("agent-a"), make_agent("agent-b", active=False), make_agent("agent-c")]
    rule = round_robin("agent-a", "agent-b", "agent-c", rule_id=1)
    pool = resolve_candidates(rule, {}, roster)

    result = dispatch(rule, pool, CursorState(position=2, version=3))

    assert result.agent.id == "agent-a"
    assert result.cursor_advance.index == 0
    assert result.cursor_advance.new_position == 1


def test_round_robin_without_cursor_starts_at_zero():
    rule = round_robin("agent-a", "agent-b", rule_id=1)
    pool = resolve_candidates(rule, {}, make_agents("agent-a", "agent-b"))

    assert dispatch(rule, pool).agent.id == "agent-a"


# =============================================================================
# LEAST LOADED
# =============================================================================

def test_least_loaded_picks_unique_minimum():
    agents = make_agents("agent-a", "agent-b", "agent-c")

    for _ in range(5):
        assert select_least_loaded(agents, {"agent-a": 4, "agent-b": 1, "agent-c": 3}).id == "agent-b"


def test_least_loaded_tie_goes_to_first_in_pool_order():
    agents = make_agents("agent-c", "agent-a", "agent-b")

    assert select_least_loaded(agents, {"agent-a": 2, "agent-b": 2, "agent-c": 2}).id == "agent-c"
    assert select_least_loaded(agents, {"agent-a": 1, "agent-b": 1, "agent-c": 2}).id == "agent-a"


def test_least_loaded_missing_count_is_zero():
    agents = make_agents("agent-a", "agent-b")

    assert select_least_loaded(agents, {"agent-a": 1}).id == "agent-b"


def test_least_loaded_dispatch_has_no_mutation():
    rule = least_loaded("agent-a", "agent-b", rule_id=1)
    pool = resolve_candidates(rule, {}, make_agents("agent-a", "agent-b"))

    result = dispatch(rule, pool, loads={"agent-a": 3, "agent-b": 0})

    assert result.agent.id == "agent-b"
    assert result.cursor_advance is None


# =============================================================================
# FIXED / TERRITORY
# =============================================================================

def test_fixed_has_no_mutation():
    rule = fixed("agent-a", rule_id=1)
    pool = resolve_candidates(rule, {}, make_agents("agent-a"))

    result = dispatch(rule, pool)

    assert result.agent.id == "agent-a"
    assert result.cursor_advance is None


def test_territory_single_agent_has_no_mutation():
    rule = territory("state", {"CA": ["agent-a"]}, rule_id=1)
    pool = resolve_candidates(rule, {"state": "CA"}, make_agents("agent-a"))

    result = dispatch(rule, pool)

    assert result.agent.id == "agent-a"
    assert result.cursor_advance is None


def test_territory_multi_agent_bucket_rotates_with_bucket_cursor():
    rule = territory("state", {"CA": ["agent-a", "agent-b"]}, rule_id=4)
    pool = resolve_candidates(rule, {"state": "CA"}, make_agents("agent-a", "agent-b"))

    result = dispatch(rule, pool, CursorState(position=1, version=1))

    assert result.agent.id == "agent-b"
    assert result.cursor_advance.bucket == "CA"
    assert result.cursor_advance.rule_id == 4


def test_dispatch_rejects_empty_pool():
    with pytest.raises(ValueError):
        dispatch(fixed("agent-a", rule_id=1), CandidatePool(reason="fixed_agent_inactive"))


def test_dispatch_is_deterministic():
    rule = least_loaded("agent-a", "agent-b", "agent-c", rule_id=1)
    pool = resolve_candidates(rule, {}, make_agents("agent-a", "agent-b", "agent-c"))
    loads = {"agent-a": 2, "agent-b": 2, "agent-c": 5}

    picks = {dispatch(rule, pool, loads=loads).agent.id for _ in range(10)}

    assert picks == {"agent-a"}
