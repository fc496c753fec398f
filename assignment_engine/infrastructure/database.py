"""Gerencia conexão com o banco (PostgreSQL em produção, SQLite em dev/testes)."""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from assignment_engine.config import get_settings

settings = get_settings()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Cria a engine assíncrona; pool dimensionado só para PostgreSQL."""
    if database_url.startswith("postgresql"):
        return create_async_engine(
            database_url,
            echo=echo,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
        )
    return create_async_engine(database_url, echo=echo)


engine = build_engine(settings.async_database_url, echo=settings.debug)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency do FastAPI para injetar sessão do banco."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(bind: AsyncEngine = None) -> None:
    """Cria tabelas do banco (usar só em dev)."""
    from assignment_engine.domain.entities import Base
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
