"""
AVALIADOR DE CONDIÇÕES
======================

Compara os campos de um registro com a lista de condições de uma regra.
Puro e sem estado: seguro para chamadas concorrentes e para pré-visualização.

Regras de comparação:
- Campo ausente vale como vazio
- equals / not_equals: texto exato, sensível a maiúsculas, após conversão para texto
- contains / starts_with: substring sobre os valores convertidos para texto
- is_empty / is_not_empty: nulo ou texto vazio; ignoram o `value`
- Operador desconhecido: falha fechada (condição não casa) e vira log de configuração
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from ..entities.enums import ConditionOperator
from ..exceptions import ConfigurationError, UnknownOperatorError, report_configuration_error
from ..strategy_config import Condition, parse_conditions

logger = logging.getLogger(__name__)


def to_text(value: Any) -> str:
    """Converte o valor para o texto usado nas comparações."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    # 10.0 e 10 comparam iguais
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_empty_value(value: Any) -> bool:
    return value is None or value == ""


def read_field(record: Optional[Mapping[str, Any]], field: str) -> Any:
    if not record:
        return None
    return record.get(field)


def evaluate_condition(record: Optional[Mapping[str, Any]], condition: Condition, rule_id=None) -> bool:
    """
    Avalia uma condição isolada.

    Raises:
        UnknownOperatorError: operador fora da lista suportada
    """
    operator = condition.known_operator
    if operator is None:
        raise UnknownOperatorError(condition.operator, condition.field, rule_id=rule_id)

    raw = read_field(record, condition.field)

    if operator == ConditionOperator.IS_EMPTY:
        return is_empty_value(raw)
    if operator == ConditionOperator.IS_NOT_EMPTY:
        return not is_empty_value(raw)

    actual = to_text(raw)
    expected = to_text(condition.value)

    if operator == ConditionOperator.EQUALS:
        return actual == expected
    if operator == ConditionOperator.NOT_EQUALS:
        return actual != expected
    if operator == ConditionOperator.CONTAINS:
        return expected in actual
    # STARTS_WITH
    return actual.startswith(expected)


def _validate_operators(conditions: Sequence[Condition], rule_id=None) -> None:
    for condition in conditions:
        if condition.known_operator is None:
            raise UnknownOperatorError(condition.operator, condition.field, rule_id=rule_id)


def matches(
    record: Optional[Mapping[str, Any]],
    conditions: Optional[Sequence[Union[Condition, dict]]],
    rule_id=None,
    tenant_id: Optional[str] = None,
) -> bool:
    """
    Verifica se o registro satisfaz todas as condições (AND).

    Lista vazia sempre casa. Qualquer erro de configuração faz a regra
    inteira não casar; o erro é registrado em log, nunca propagado.
    """
    if not conditions:
        return True

    try:
        if not all(isinstance(c, Condition) for c in conditions):
            conditions = parse_conditions(list(conditions), rule_id=rule_id)

        # Operadores validados antes de avaliar: o erro aparece mesmo quando
        # uma condição anterior já não casaria
        _validate_operators(conditions, rule_id=rule_id)

        return all(evaluate_condition(record, c, rule_id=rule_id) for c in conditions)
    except ConfigurationError as e:
        report_configuration_error(logger, e, tenant_id=tenant_id)
        return False
