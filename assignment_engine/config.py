"""Configurações da aplicação - carrega variáveis do .env"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",  # carrega local
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===========================================
    # CORE
    # ===========================================
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///./assignment_engine.db"
    debug: bool = False

    # Origens liberadas no CORS (painel administrativo)
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_json: bool = True

    # ===========================================
    # MOTOR DE ATRIBUIÇÃO
    # ===========================================
    # Tentativas de compare-and-swap do cursor de round robin
    cursor_cas_max_attempts: int = 8
    # Espera máxima (ms) entre tentativas; sorteada entre 0 e este valor
    cursor_cas_backoff_ms: int = 5
    # Quantidade padrão de posições na pré-visualização do rodízio
    preview_default_count: int = 5

    # ===========================================
    # PROPRIEDADES
    # ===========================================
    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def async_database_url(self) -> str:
        """
        URL no formato do driver assíncrono.

        Provedores costumam fornecer postgresql:// mas asyncpg precisa de postgresql+asyncpg://
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    return Settings()
