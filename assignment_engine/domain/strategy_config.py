"""
CONFIGURAÇÃO DAS ESTRATÉGIAS
============================

O payload de cada regra é uma união discriminada pelo campo `strategy`:
cada variante exige só os campos que usa (lista de agentes, mapa de
territórios, agente fixo). Payload inválido é erro de configuração.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .entities.enums import ConditionOperator
from .exceptions import ConfigurationError


class _ConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class RoundRobinConfig(_ConfigModel):
    """Rodízio entre os agentes, na ordem configurada."""
    strategy: Literal["round_robin"] = "round_robin"
    agent_ids: List[str] = Field(..., min_length=1)


class LeastLoadedConfig(_ConfigModel):
    """Agente com menor carga atual entre os configurados."""
    strategy: Literal["least_loaded"] = "least_loaded"
    agent_ids: List[str] = Field(..., min_length=1)


class TerritoryConfig(_ConfigModel):
    """
    Território pelo valor de um campo do registro.

    `territories` mapeia valor exato -> agentes. Sem bucket, usa
    `fallback_agent_id` se configurado; senão o registro fica sem dono.
    """
    strategy: Literal["territory"] = "territory"
    field: str = Field(..., min_length=1)
    territories: Dict[str, List[str]] = Field(default_factory=dict)
    fallback_agent_id: Optional[str] = None


class FixedConfig(_ConfigModel):
    """Sempre o mesmo agente."""
    strategy: Literal["fixed"] = "fixed"
    agent_id: str = Field(..., min_length=1)


StrategyConfig = Annotated[
    Union[RoundRobinConfig, LeastLoadedConfig, TerritoryConfig, FixedConfig],
    Field(discriminator="strategy"),
]

_strategy_adapter = TypeAdapter(StrategyConfig)


class Condition(_ConfigModel):
    """
    Predicado (campo, operador, valor).

    O operador fica como texto livre: operador desconhecido só é detectado
    na avaliação, para a regra falhar fechada em vez de quebrar o carregamento.
    """
    field: str
    operator: str
    value: Any = None

    @property
    def known_operator(self) -> Optional[ConditionOperator]:
        try:
            return ConditionOperator(self.operator)
        except ValueError:
            return None


_conditions_adapter = TypeAdapter(List[Condition])


def parse_strategy_config(strategy: str, config: Optional[dict], rule_id=None):
    """
    Valida o payload bruto (coluna JSON) contra a variante da estratégia.

    Raises:
        ConfigurationError: estratégia desconhecida ou campos inválidos
    """
    payload = dict(config or {})
    payload.pop("strategy", None)
    payload["strategy"] = strategy
    try:
        return _strategy_adapter.validate_python(payload)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuração inválida para estratégia '{strategy}': {e.errors(include_url=False)}",
            rule_id=rule_id,
            reason="invalid_strategy_config",
        ) from e


def parse_conditions(conditions: Any, rule_id=None) -> List[Condition]:
    """Valida a lista de condições (coluna JSON). Nulo equivale a lista vazia."""
    try:
        return _conditions_adapter.validate_python(conditions or [])
    except ValidationError as e:
        raise ConfigurationError(
            f"Condições inválidas: {e.errors(include_url=False)}",
            rule_id=rule_id,
            reason="invalid_conditions",
        ) from e
