"""Casos de uso."""
from .assignment_orchestrator import AssignmentOrchestrator, LoadProvider

__all__ = [
    "AssignmentOrchestrator",
    "LoadProvider",
]
