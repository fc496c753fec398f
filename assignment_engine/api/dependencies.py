"""
DEPENDENCIES (Dependências)
============================

Funções que são injetadas nas rotas.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from assignment_engine.infrastructure.database import async_session
from assignment_engine.infrastructure.stores import AssignmentStore, SqlAssignmentStore


async def get_tenant_id(x_tenant_id: Optional[str] = Header(default=None)) -> str:
    """
    Tenant da requisição, vindo do header X-Tenant-Id.

    Todas as consultas de regras, agentes e cursores são escopadas por ele.
    """
    if not x_tenant_id or not x_tenant_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Header X-Tenant-Id é obrigatório",
        )
    return x_tenant_id.strip()


def get_assignment_store() -> AssignmentStore:
    """Store SQL compartilhado pelo motor (cursor com compare-and-swap)."""
    return SqlAssignmentStore(async_session)
