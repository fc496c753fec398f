"""
SELETOR DE REGRAS
=================

Escolhe a primeira regra habilitada, do módulo do registro, cujas condições casam.
Leitura pura: não altera nada, pode ser chamado em paralelo e em dry-run.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from ..entities import AssignmentRule
from ..exceptions import ConfigurationError, report_configuration_error
from .condition_matcher import matches

logger = logging.getLogger(__name__)


def _creation_key(rule: AssignmentRule):
    # id autoincremento = ordem de criação; regras ainda sem id ficam por último
    return (rule.id is None, rule.id or 0)


def order_rules(
    rules: Iterable[AssignmentRule],
    module_target: Optional[str] = None,
) -> List[AssignmentRule]:
    """
    Filtra habilitadas (e do módulo, se informado) e ordena por prioridade
    crescente; empate pela ordem de criação.
    """
    eligible = [
        rule for rule in rules
        if rule.enabled and (module_target is None or rule.module_target == module_target)
    ]
    return sorted(eligible, key=lambda rule: (rule.priority, *_creation_key(rule)))


def select_rule(
    record: Mapping[str, Any],
    rules: Iterable[AssignmentRule],
    module_target: Optional[str] = None,
    tenant_id: Optional[str] = None,
) -> Optional[AssignmentRule]:
    """
    Retorna a regra que decide o registro, ou None se nenhuma casar.

    Regras com payload de estratégia ou condições inválidas são puladas
    (erro de configuração registrado em log) e a avaliação segue para a próxima.
    """
    for rule in order_rules(rules, module_target):
        try:
            conditions = rule.parsed_conditions()
            rule.strategy_config()
        except ConfigurationError as e:
            report_configuration_error(logger, e, tenant_id=tenant_id)
            continue

        if matches(record, conditions, rule_id=rule.id, tenant_id=tenant_id):
            logger.debug(f"Regra {rule.id} ({rule.name}) casou")
            return rule

    return None
