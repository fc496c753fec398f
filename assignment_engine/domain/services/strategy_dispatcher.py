"""
DESPACHO DAS ESTRATÉGIAS
========================

Escolhe um agente dentro do pool já resolvido.

- fixed: o único candidato, sem mutação
- territory: o candidato do bucket; bucket com vários agentes roda um
  sub-rodízio com cursor próprio (mesma semântica do round robin)
- round_robin: índice = cursor mod n; novo cursor = (índice + 1) mod n,
  devolvido como CursorAdvance para ser persistido por compare-and-swap
- least_loaded: menor carga informada por quem chamou; empate fica com o
  primeiro na ordem do pool. Sem mutação: a carga é relida a cada chamada

Determinístico: mesma entrada, mesma saída (a não ser o cursor, que é a
única mudança de estado intencional).
"""

from typing import List, Mapping, Optional

from ..decision import CandidatePool, CursorAdvance, CursorState, DispatchResult
from ..entities import Agent, AssignmentRule
from ..strategy_config import LeastLoadedConfig, RoundRobinConfig, TerritoryConfig
from .candidate_pool import DEFAULT_CURSOR_BUCKET


def select_round_robin(
    agents: List[Agent],
    cursor: CursorState,
    rule_id: int,
    bucket: str = DEFAULT_CURSOR_BUCKET,
) -> DispatchResult:
    """
    Seleciona pelo cursor persistido.

    Se o pool encolheu desde o último avanço, o cursor é reduzido módulo o
    novo tamanho antes do uso.
    """
    size = len(agents)
    index = cursor.position % size
    advance = CursorAdvance(
        rule_id=rule_id,
        bucket=bucket,
        expected_version=cursor.version,
        index=index,
        new_position=(index + 1) % size,
    )
    return DispatchResult(agent=agents[index], cursor_advance=advance)


def select_least_loaded(agents: List[Agent], loads: Mapping[str, int]) -> Agent:
    """
    Menor carga atual. Agente sem contagem informada conta como 0.

    min() devolve o primeiro entre os empatados, ou seja, o primeiro na ordem do pool.
    """
    return min(agents, key=lambda agent: loads.get(agent.id, 0))


def needs_cursor(pool: CandidatePool) -> bool:
    return pool.cursor_bucket is not None


def dispatch(
    rule: AssignmentRule,
    pool: CandidatePool,
    cursor: Optional[CursorState] = None,
    loads: Optional[Mapping[str, int]] = None,
) -> DispatchResult:
    """
    Executa a estratégia da regra sobre o pool.

    Args:
        rule: regra já selecionada
        pool: candidatos resolvidos (não pode estar vazio)
        cursor: leitura atual do cursor (round robin / bucket com rodízio)
        loads: carga atual por agente (least_loaded)
    """
    if pool.is_empty:
        raise ValueError(f"Pool vazio para a regra {rule.id}: nada a despachar")

    config = rule.strategy_config()

    if isinstance(config, RoundRobinConfig) or (
        isinstance(config, TerritoryConfig) and needs_cursor(pool)
    ):
        bucket = pool.cursor_bucket if pool.cursor_bucket is not None else DEFAULT_CURSOR_BUCKET
        return select_round_robin(pool.agents, cursor or CursorState(), rule.id, bucket)

    if isinstance(config, LeastLoadedConfig):
        return DispatchResult(agent=select_least_loaded(pool.agents, loads or {}))

    # fixed e territory com um único candidato
    return DispatchResult(agent=pool.agents[0])
