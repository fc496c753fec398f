"""Stores do estado do motor (cursores e decisões)."""
from .interface import AssignmentStore
from .memory_store import InMemoryAssignmentStore
from .sql_store import SqlAssignmentStore

__all__ = [
    "AssignmentStore",
    "InMemoryAssignmentStore",
    "SqlAssignmentStore",
]
