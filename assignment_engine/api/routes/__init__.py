"""Rotas da API."""

from .assignment_rules import router as assignment_rules_router
from .agents import router as agents_router
from .assignments import router as assignments_router
from .health import router as health_router

__all__ = [
    "assignment_rules_router",
    "agents_router",
    "assignments_router",
    "health_router",
]
