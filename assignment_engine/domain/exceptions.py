"""Erros do motor de atribuição."""


class ConfigurationError(ValueError):
    """
    Regra mal configurada (operador desconhecido, payload inválido, campo ausente).

    Nunca sobe para quem chamou o motor: vira "regra não casa" e é registrada em log.
    """

    def __init__(self, message: str, rule_id=None, reason: str = "invalid_configuration"):
        super().__init__(message)
        self.rule_id = rule_id
        self.reason = reason


class UnknownOperatorError(ConfigurationError):
    """Condição com operador fora da lista suportada."""

    def __init__(self, operator: str, field: str = None, rule_id=None):
        super().__init__(
            f"Operador desconhecido '{operator}' no campo '{field}'",
            rule_id=rule_id,
            reason="unknown_operator",
        )
        self.operator = operator
        self.field = field


class CursorConflictError(RuntimeError):
    """
    Esgotou as tentativas de compare-and-swap do cursor de round robin.

    Erro de verdade: pular a atribuição em silêncio quebraria a justiça do rodízio.
    """

    def __init__(self, rule_id, bucket: str, attempts: int):
        super().__init__(
            f"Conflito no cursor da regra {rule_id} (bucket '{bucket}') após {attempts} tentativas"
        )
        self.rule_id = rule_id
        self.bucket = bucket
        self.attempts = attempts


class DuplicateDecisionError(RuntimeError):
    """Já existe decisão gravada com a mesma chave de idempotência."""

    def __init__(self, tenant_id: str, idempotency_key: str):
        super().__init__(f"Decisão '{idempotency_key}' já registrada para o tenant {tenant_id}")
        self.tenant_id = tenant_id
        self.idempotency_key = idempotency_key


def report_configuration_error(logger, error: ConfigurationError, **context) -> None:
    """Canal lateral dos erros de configuração: log estruturado, nunca exceção."""
    payload = {"rule_id": error.rule_id, "reason": error.reason, **context}
    if isinstance(error, UnknownOperatorError):
        payload.update(operator=error.operator, field=error.field)
    logger.warning(
        f"⚠️ Erro de configuração na regra {error.rule_id}: {error}",
        extra={"context": {"configuration_error": payload}},
    )
