"""
TESTES - CONFIGURAÇÃO E LOGGING
===============================
"""

import json
import logging

from assignment_engine.config import Settings
from assignment_engine.infrastructure.logging_config import JSONFormatter


def test_postgres_urls_are_rewritten_for_asyncpg():
    assert Settings(database_url="postgres://u:p@db/app").async_database_url == "postgresql+asyncpg://u:p@db/app"
    assert Settings(database_url="postgresql://u:p@db/app").async_database_url == "postgresql+asyncpg://u:p@db/app"
    assert Settings(database_url="sqlite+aiosqlite:///x.db").async_database_url == "sqlite+aiosqlite:///x.db"


def test_engine_defaults():
    settings = Settings()

    assert settings.cursor_cas_max_attempts >= 1
    assert settings.preview_default_count == 5


def test_json_formatter_merges_context():
    record = logging.LogRecord(
        name="assignment_engine.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg="Erro de configuração na regra %s",
        args=(3,),
        exc_info=None,
    )
    record.context = {"configuration_error": {"rule_id": 3, "reason": "unknown_operator"}}

    payload = json.loads(JSONFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["message"] == "Erro de configuração na regra 3"
    assert payload["configuration_error"]["reason"] == "unknown_operator"
