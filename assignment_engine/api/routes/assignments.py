"""
ROTAS: ATRIBUIÇÃO
=================

Entrada de produção do motor: chamada pelo pipeline de criação de
registros para decidir o dono de um registro novo.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from assignment_engine.application.use_cases import AssignmentOrchestrator
from assignment_engine.domain.exceptions import CursorConflictError
from assignment_engine.infrastructure.stores import AssignmentStore
from assignment_engine.api.dependencies import get_assignment_store, get_tenant_id
from assignment_engine.api.schemas import DecisionResponse, RecordPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["Atribuição"])


class AssignRequest(RecordPayload):
    """Registro novo a atribuir."""
    module_target: str = Field(..., min_length=1, max_length=50)
    idempotency_key: Optional[str] = Field(None, max_length=128)


@router.post("", response_model=DecisionResponse)
async def assign_record(
    payload: AssignRequest,
    tenant_id: str = Depends(get_tenant_id),
    store: AssignmentStore = Depends(get_assignment_store),
):
    """
    Decide o dono do registro.

    Sem regra ou sem candidatos também é 200: o registro fica sem dono e
    `outcome` diz qual dos dois casos ocorreu. Conflito persistente no
    cursor do rodízio vira 409 (seguro repetir com a mesma idempotency_key).
    """
    orchestrator = AssignmentOrchestrator(store=store, tenant_id=tenant_id)
    try:
        decision = await orchestrator.assign(
            record=payload.record,
            module_target=payload.module_target,
            loads=payload.loads,
            idempotency_key=payload.idempotency_key,
        )
    except CursorConflictError as e:
        raise HTTPException(
            status_code=409,
            detail={
                "error": "CURSOR_CONFLICT",
                "message": str(e),
                "rule_id": e.rule_id,
                "retry_safe": True,
            },
        )
    return DecisionResponse.from_decision(decision)
