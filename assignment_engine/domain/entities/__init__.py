"""Entidades do domínio."""
from .base import Base, TimestampMixin, JSONType
from .enums import (
    AssignmentStrategy,
    ConditionOperator,
    DecisionOutcome,
)
from .assignment_rule import AssignmentRule
from .agent import Agent
from .rule_cursor import RuleCursor
from .record_assignment import RecordAssignment

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "JSONType",
    # Enums
    "AssignmentStrategy",
    "ConditionOperator",
    "DecisionOutcome",
    # Models
    "AssignmentRule",
    "Agent",
    "RuleCursor",
    "RecordAssignment",
]
