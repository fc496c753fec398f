import pytest
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assignment_engine.api.dependencies import get_assignment_store
from assignment_engine.api.main import create_app
from assignment_engine.infrastructure.database import build_engine, get_db, init_db
from assignment_engine.infrastructure.stores import InMemoryAssignmentStore, SqlAssignmentStore

from tests.utils import TENANT


@pytest.fixture
async def engine(tmp_path):
    """
    Banco SQLite (arquivo temporário) novo para cada teste.

    Arquivo e não :memory: para que várias conexões vejam o mesmo banco
    nos testes de concorrência.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Fixture que fornece uma sessão de banco de dados limpa para cada teste.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def sql_store(session_factory) -> SqlAssignmentStore:
    return SqlAssignmentStore(session_factory)


@pytest.fixture
def memory_store() -> InMemoryAssignmentStore:
    return InMemoryAssignmentStore()


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Cliente HTTP da API apontando para o banco de teste.
    """
    app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_assignment_store] = lambda: SqlAssignmentStore(session_factory)

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Tenant-Id": TENANT},
    ) as ac:
        yield ac
