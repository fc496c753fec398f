"""
ROTAS: AGENTES (ROSTER)
=======================

Roster de agentes do tenant. O motor só considera agentes ativos.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from assignment_engine.domain.entities import Agent
from assignment_engine.infrastructure.database import get_db
from assignment_engine.api.dependencies import get_tenant_id


router = APIRouter(prefix="/agents", tags=["Agentes"])


class AgentCreate(BaseModel):
    """Schema para cadastrar agente."""
    id: str = Field(..., min_length=1, max_length=64)
    name: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = None
    active: bool = True


class AgentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = None
    active: Optional[bool] = None


class AgentResponse(BaseModel):
    id: str
    name: Optional[str]
    email: Optional[str]
    active: bool

    class Config:
        from_attributes = True


async def _get_agent(db: AsyncSession, tenant_id: str, agent_id: str) -> Agent:
    agent = await db.get(Agent, {"tenant_id": tenant_id, "id": agent_id})
    if not agent:
        raise HTTPException(status_code=404, detail="Agente não encontrado")
    return agent


@router.get("", response_model=List[AgentResponse])
async def list_agents(
    active: Optional[bool] = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    query = select(Agent).where(Agent.tenant_id == tenant_id)
    if active is not None:
        query = query.where(Agent.active == active)
    result = await db.execute(query.order_by(Agent.id))
    return list(result.scalars().all())


@router.post("", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def create_agent(
    payload: AgentCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Cadastra um agente no roster.
    """
    existing = await db.get(Agent, {"tenant_id": tenant_id, "id": payload.id})
    if existing:
        raise HTTPException(
            status_code=409,
            detail="Já existe um agente com esse id"
        )

    agent = Agent(tenant_id=tenant_id, **payload.model_dump())
    db.add(agent)
    await db.commit()
    await db.refresh(agent)
    return agent


@router.patch("/{agent_id}", response_model=AgentResponse)
async def update_agent(
    agent_id: str,
    payload: AgentUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Atualiza o agente. Desativar tira o agente de todos os pools no próximo despacho.
    """
    agent = await _get_agent(db, tenant_id, agent_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(agent, field, value)
    await db.commit()
    await db.refresh(agent)
    return agent
