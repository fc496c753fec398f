"""Serviços puros do motor: condições, seleção de regra, candidatos e estratégias."""
from .condition_matcher import matches, evaluate_condition
from .rule_selector import select_rule, order_rules
from .candidate_pool import resolve_candidates
from .strategy_dispatcher import dispatch, select_round_robin, select_least_loaded

__all__ = [
    "matches",
    "evaluate_condition",
    "select_rule",
    "order_rules",
    "resolve_candidates",
    "dispatch",
    "select_round_robin",
    "select_least_loaded",
]
