"""
TESTES - SELETOR DE REGRAS
==========================
"""

import pytest

from assignment_engine.domain.services import order_rules, select_rule

from tests.utils import condition, fixed, make_rule, round_robin


def test_lowest_priority_value_wins():
    low = fixed("agent-a", priority=10, rule_id=2)
    high = fixed("agent-b", priority=1, rule_id=1)

    assert select_rule({}, [low, high]) is high


def test_priority_tie_broken_by_creation_order():
    first = fixed("agent-a", priority=5, rule_id=1)
    second = fixed("agent-b", priority=5, rule_id=2)

    assert select_rule({}, [second, first]) is first
    assert order_rules([second, first]) == [first, second]


def test_rules_without_id_sort_after_saved_rules():
    saved = fixed("agent-a", priority=5, rule_id=9)
    unsaved = fixed("agent-b", priority=5)

    assert order_rules([unsaved, saved]) == [saved, unsaved]


def test_disabled_rules_are_skipped():
    disabled = fixed("agent-a", priority=1, rule_id=1, enabled=False)
    enabled = fixed("agent-b", priority=2, rule_id=2)

    assert select_rule({}, [disabled, enabled]) is enabled


def test_module_target_filter():
    members = fixed("agent-a", priority=1, rule_id=1, module_target="members")
    leads = fixed("agent-b", priority=2, rule_id=2, module_target="leads")

    assert select_rule({}, [members, leads], module_target="leads") is leads
    assert select_rule({}, [members, leads], module_target="members") is members
    assert select_rule({}, [members, leads], module_target="enrollments") is None


def test_first_matching_rule_is_returned():
    ca_only = fixed("agent-a", priority=1, rule_id=1, conditions=[condition("state", "equals", "CA")])
    catch_all = fixed("agent-b", priority=2, rule_id=2)

    assert select_rule({"state": "CA"}, [ca_only, catch_all]) is ca_only
    assert select_rule({"state": "TX"}, [ca_only, catch_all]) is catch_all


def test_returns_none_when_nothing_matches():
    ca_only = fixed("agent-a", rule_id=1, conditions=[condition("state", "equals", "CA")])

    assert select_rule({"state": "TX"}, [ca_only]) is None
    assert select_rule({"state": "TX"}, []) is None


def test_rule_with_unknown_operator_is_skipped():
    broken = fixed("agent-a", priority=1, rule_id=1, conditions=[condition("state", "like", "C%")])
    fallback = fixed("agent-b", priority=2, rule_id=2)

    assert select_rule({"state": "CA"}, [broken, fallback]) is fallback


def test_rule_with_invalid_strategy_payload_is_skipped():
    broken = make_rule("round_robin", {"agent_ids": []}, priority=1, rule_id=1)
    unknown = make_rule("weighted", {"agent_ids": ["agent-a"]}, priority=2, rule_id=2)
    valid = round_robin("agent-a", priority=3, rule_id=3)

    assert select_rule({}, [broken, unknown, valid]) is valid


def test_selection_does_not_mutate_rules():
    rule = round_robin("agent-a", "agent-b", rule_id=1)
    before = (rule.priority, rule.enabled, dict(rule.config), list(rule.conditions))

    for _ in range(3):
        select_rule({}, [rule])

    assert (rule.priority, rule.enabled, dict(rule.config), list(rule.conditions)) == before
