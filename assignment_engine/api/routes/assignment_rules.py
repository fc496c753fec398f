"""
ROTAS: REGRAS DE ATRIBUIÇÃO
===========================

CRUD das regras usadas pelo motor, mais a pré-visualização (dry-run)
de uma regra isolada e da fila do rodízio.
"""

from datetime import datetime
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from assignment_engine.application.use_cases import AssignmentOrchestrator
from assignment_engine.domain.entities import AssignmentRule, AssignmentStrategy, ConditionOperator
from assignment_engine.domain.exceptions import ConfigurationError
from assignment_engine.domain.strategy_config import parse_strategy_config
from assignment_engine.infrastructure.database import get_db
from assignment_engine.infrastructure.stores import AssignmentStore
from assignment_engine.api.dependencies import get_assignment_store, get_tenant_id
from assignment_engine.api.schemas import DecisionResponse, RecordPayload, RoundRobinPreviewResponse


router = APIRouter(prefix="/assignment-rules", tags=["Regras de Atribuição"])


# ==========================================
# SCHEMAS (Pydantic)
# ==========================================

class ConditionSchema(BaseModel):
    """Condição (campo, operador, valor)."""
    field: str = Field(..., min_length=1)
    operator: ConditionOperator
    value: Any = None


def _check_strategy_config(strategy: AssignmentStrategy, config: dict) -> None:
    try:
        parse_strategy_config(strategy.value, config)
    except ConfigurationError as e:
        raise ValueError(str(e)) from e


class RuleCreate(BaseModel):
    """Schema para criar regra."""
    name: str = Field(..., min_length=1, max_length=200)
    module_target: str = Field(default="leads", min_length=1, max_length=50)
    enabled: bool = True
    priority: int = 100
    strategy: AssignmentStrategy
    config: dict = Field(default_factory=dict)
    conditions: List[ConditionSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_config(self):
        _check_strategy_config(self.strategy, self.config)
        return self


class RuleUpdate(BaseModel):
    """Schema para atualizar regra (estratégia e config validadas juntas na rota)."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    module_target: Optional[str] = Field(None, min_length=1, max_length=50)
    enabled: Optional[bool] = None
    priority: Optional[int] = None
    strategy: Optional[AssignmentStrategy] = None
    config: Optional[dict] = None
    conditions: Optional[List[ConditionSchema]] = None


class RuleResponse(BaseModel):
    """Schema de resposta da regra."""
    id: int
    name: str
    module_target: str
    enabled: bool
    priority: int
    strategy: str
    config: Optional[dict]
    conditions: Optional[list]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ==========================================
# HELPERS
# ==========================================

async def _get_rule(db: AsyncSession, tenant_id: str, rule_id: int) -> AssignmentRule:
    result = await db.execute(
        select(AssignmentRule)
        .where(AssignmentRule.tenant_id == tenant_id)
        .where(AssignmentRule.id == rule_id)
    )
    rule = result.scalar_one_or_none()
    if not rule:
        raise HTTPException(status_code=404, detail="Regra não encontrada")
    return rule


# ==========================================
# ENDPOINTS
# ==========================================

@router.get("", response_model=List[RuleResponse])
async def list_rules(
    module_target: Optional[str] = Query(None),
    enabled: Optional[bool] = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Lista as regras do tenant na ordem de avaliação (prioridade, criação).
    """
    query = select(AssignmentRule).where(AssignmentRule.tenant_id == tenant_id)
    if module_target is not None:
        query = query.where(AssignmentRule.module_target == module_target)
    if enabled is not None:
        query = query.where(AssignmentRule.enabled == enabled)

    result = await db.execute(query.order_by(AssignmentRule.priority, AssignmentRule.id))
    return list(result.scalars().all())


@router.post("", response_model=RuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(
    payload: RuleCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Cria uma nova regra.
    """
    rule = AssignmentRule(
        tenant_id=tenant_id,
        name=payload.name,
        module_target=payload.module_target,
        enabled=payload.enabled,
        priority=payload.priority,
        strategy=payload.strategy.value,
        config=payload.config,
        conditions=[c.model_dump(mode="json") for c in payload.conditions],
    )
    db.add(rule)
    await db.commit()
    await db.refresh(rule)
    return rule


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule(
    rule_id: int,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return await _get_rule(db, tenant_id, rule_id)


@router.patch("/{rule_id}", response_model=RuleResponse)
async def update_rule(
    rule_id: int,
    payload: RuleUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Atualiza uma regra.

    Trocar a estratégia exige um config válido para a nova estratégia.
    """
    rule = await _get_rule(db, tenant_id, rule_id)
    update_data = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "strategy" in update_data or "config" in update_data:
        strategy = payload.strategy or AssignmentStrategy(rule.strategy)
        config = update_data.get("config", rule.config) or {}
        try:
            parse_strategy_config(strategy.value, config, rule_id=rule.id)
        except ConfigurationError as e:
            raise HTTPException(status_code=422, detail=str(e))
        update_data["strategy"] = strategy.value
        update_data["config"] = config

    if "conditions" in update_data:
        update_data["conditions"] = [c.model_dump(mode="json") for c in payload.conditions]

    for field, value in update_data.items():
        setattr(rule, field, value)

    await db.commit()
    await db.refresh(rule)
    return rule


@router.post("/{rule_id}/toggle", response_model=RuleResponse)
async def toggle_rule(
    rule_id: int,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Habilita/desabilita a regra.
    """
    rule = await _get_rule(db, tenant_id, rule_id)
    rule.enabled = not rule.enabled
    await db.commit()
    await db.refresh(rule)
    return rule


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
    rule_id: int,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    rule = await _get_rule(db, tenant_id, rule_id)
    await db.delete(rule)
    await db.commit()


@router.post("/{rule_id}/preview", response_model=DecisionResponse)
async def preview_rule(
    rule_id: int,
    payload: RecordPayload,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    store: AssignmentStore = Depends(get_assignment_store),
):
    """
    Simula a regra para um registro, sem avançar o cursor.
    """
    rule = await _get_rule(db, tenant_id, rule_id)
    orchestrator = AssignmentOrchestrator(store=store, tenant_id=tenant_id)
    decision = await orchestrator.preview_assignment(payload.record, rule, loads=payload.loads)
    return DecisionResponse.from_decision(decision)


@router.get("/{rule_id}/round-robin-preview", response_model=RoundRobinPreviewResponse)
async def preview_round_robin(
    rule_id: int,
    count: Optional[int] = Query(None, ge=1, le=50),
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    store: AssignmentStore = Depends(get_assignment_store),
):
    """
    Próximos agentes da fila do rodízio, a partir do cursor atual.
    """
    rule = await _get_rule(db, tenant_id, rule_id)
    orchestrator = AssignmentOrchestrator(store=store, tenant_id=tenant_id)
    agent_ids = await orchestrator.preview_round_robin(rule, count=count)
    return RoundRobinPreviewResponse(rule_id=rule.id, agent_ids=agent_ids)
