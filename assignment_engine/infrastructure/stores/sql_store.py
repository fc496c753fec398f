"""
STORE SQL (SQLAlchemy async)
============================

Store usado em produção. Seguro com várias instâncias do serviço:

- O cursor é avançado com UPDATE condicional na versão
  (WHERE version = :lida); rowcount 0 = outra instância avançou antes
- O UPDATE e o INSERT da decisão estão na mesma transação
- A linha do cursor é criada na primeira leitura; se outra instância
  criar ao mesmo tempo, a violação de unicidade é tolerada e relemos
"""

import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assignment_engine.domain.decision import CursorAdvance, CursorState
from assignment_engine.domain.entities import Agent, AssignmentRule, RecordAssignment, RuleCursor
from assignment_engine.domain.exceptions import DuplicateDecisionError

from .interface import AssignmentStore

logger = logging.getLogger(__name__)


class SqlAssignmentStore(AssignmentStore):
    """
    Store sobre SQLAlchemy async.

    A session factory deve usar expire_on_commit=False: as decisões gravadas
    são lidas depois que a sessão fecha.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def load_rules(self, tenant_id: str, module_target: Optional[str] = None) -> List[AssignmentRule]:
        async with self.session_factory() as session:
            query = select(AssignmentRule).where(
                AssignmentRule.tenant_id == tenant_id,
                AssignmentRule.enabled == True,
            )
            if module_target is not None:
                query = query.where(AssignmentRule.module_target == module_target)

            query = query.order_by(AssignmentRule.priority, AssignmentRule.id)
            result = await session.execute(query)
            return list(result.scalars().all())

    async def load_roster(self, tenant_id: str) -> List[Agent]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Agent).where(Agent.tenant_id == tenant_id)
            )
            return list(result.scalars().all())

    async def _select_cursor(self, session: AsyncSession, rule_id: int, bucket: str) -> Optional[CursorState]:
        result = await session.execute(
            select(RuleCursor.position, RuleCursor.version).where(
                RuleCursor.rule_id == rule_id,
                RuleCursor.bucket == bucket,
            )
        )
        row = result.one_or_none()
        if row is None:
            return None
        return CursorState(position=row.position, version=row.version)

    async def read_cursor(self, rule_id: int, bucket: str) -> CursorState:
        async with self.session_factory() as session:
            state = await self._select_cursor(session, rule_id, bucket)
            if state is not None:
                return state

            session.add(RuleCursor(rule_id=rule_id, bucket=bucket, position=0, version=0))
            try:
                await session.commit()
            except IntegrityError:
                # Outra instância criou a linha ao mesmo tempo
                await session.rollback()
                logger.debug(f"Cursor da regra {rule_id} (bucket '{bucket}') criado por outra instância")

            state = await self._select_cursor(session, rule_id, bucket)
            return state or CursorState()

    async def peek_cursor(self, rule_id: int, bucket: str) -> CursorState:
        async with self.session_factory() as session:
            state = await self._select_cursor(session, rule_id, bucket)
            return state or CursorState()

    async def commit_assignment(
        self,
        entry: RecordAssignment,
        advance: Optional[CursorAdvance] = None,
    ) -> bool:
        async with self.session_factory() as session:
            try:
                if advance is not None:
                    result = await session.execute(
                        update(RuleCursor)
                        .where(
                            RuleCursor.rule_id == advance.rule_id,
                            RuleCursor.bucket == advance.bucket,
                            RuleCursor.version == advance.expected_version,
                        )
                        .values(
                            position=advance.new_position,
                            version=RuleCursor.version + 1,
                        )
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount == 0:
                        await session.rollback()
                        return False

                session.add(entry)
                await session.commit()
                return True
            except IntegrityError as e:
                await session.rollback()
                # Só a unicidade da chave vira duplicata; FK e afins sobem como estão
                if entry.idempotency_key is not None and await self._decision_exists(
                    session, entry.tenant_id, entry.idempotency_key
                ):
                    raise DuplicateDecisionError(entry.tenant_id, entry.idempotency_key) from e
                raise

    async def _decision_exists(self, session: AsyncSession, tenant_id: str, idempotency_key: str) -> bool:
        result = await session.execute(
            select(RecordAssignment.id).where(
                RecordAssignment.tenant_id == tenant_id,
                RecordAssignment.idempotency_key == idempotency_key,
            )
        )
        return result.first() is not None

    async def find_decision(self, tenant_id: str, idempotency_key: str) -> Optional[RecordAssignment]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(RecordAssignment).where(
                    RecordAssignment.tenant_id == tenant_id,
                    RecordAssignment.idempotency_key == idempotency_key,
                )
            )
            return result.scalar_one_or_none()
