"""
ASSIGNMENT STORE INTERFACE
==========================

Interface abstrata do armazenamento usado pelo orquestrador.
Cada store concreto deve implementar estes métodos.

O cursor do rodízio é recurso compartilhado entre instâncias: o único
caminho de escrita é commit_assignment, que aplica o compare-and-swap e
grava a decisão na mesma unidade atômica.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from assignment_engine.domain.decision import CursorAdvance, CursorState
from assignment_engine.domain.entities import Agent, AssignmentRule, RecordAssignment


class AssignmentStore(ABC):
    """
    Classe abstrata base para stores do motor.

    Implementações:
    - InMemoryAssignmentStore: um processo só (dev, testes)
    - SqlAssignmentStore: SQLAlchemy async, seguro entre várias instâncias
    """

    @abstractmethod
    async def load_rules(self, tenant_id: str, module_target: Optional[str] = None) -> List[AssignmentRule]:
        """Regras habilitadas do tenant (e do módulo, se informado)."""
        pass

    @abstractmethod
    async def load_roster(self, tenant_id: str) -> List[Agent]:
        """Roster completo do tenant, ativos e inativos."""
        pass

    @abstractmethod
    async def read_cursor(self, rule_id: int, bucket: str) -> CursorState:
        """
        Lê o cursor para um despacho de verdade.

        Pode criar a linha do cursor na primeira leitura.
        """
        pass

    @abstractmethod
    async def peek_cursor(self, rule_id: int, bucket: str) -> CursorState:
        """Lê o cursor sem escrever nada (pré-visualização)."""
        pass

    @abstractmethod
    async def commit_assignment(
        self,
        entry: RecordAssignment,
        advance: Optional[CursorAdvance] = None,
    ) -> bool:
        """
        Grava a decisão e, se houver, o avanço do cursor, atomicamente.

        Returns:
            False se a versão do cursor mudou desde a leitura (nada é gravado)

        Raises:
            DuplicateDecisionError: chave de idempotência já usada
        """
        pass

    @abstractmethod
    async def find_decision(self, tenant_id: str, idempotency_key: str) -> Optional[RecordAssignment]:
        """Decisão já gravada com esta chave de idempotência."""
        pass
