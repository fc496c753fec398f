"""Enums - valores fixos que se repetem no motor."""

from enum import Enum


class AssignmentStrategy(str, Enum):
    """Estratégias de distribuição de uma regra."""
    ROUND_ROBIN = "round_robin"    # Rodízio com cursor persistido
    LEAST_LOADED = "least_loaded"  # Agente com menos registros abertos
    TERRITORY = "territory"        # Por valor de um campo (estado, CEP...)
    FIXED = "fixed"                # Sempre o mesmo agente


class ConditionOperator(str, Enum):
    """Operadores aceitos nas condições de uma regra."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class DecisionOutcome(str, Enum):
    """Resultado terminal de uma execução do motor."""
    ASSIGNED = "assigned"                # Agente escolhido
    NO_RULE_MATCHED = "no_rule_matched"  # Nenhuma regra casou
    NO_CANDIDATES = "no_candidates"      # Regra casou, mas sem agente elegível
