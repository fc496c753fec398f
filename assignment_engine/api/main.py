"""
ASSIGNMENT ENGINE API - Ponto de Entrada
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assignment_engine.config import get_settings
from assignment_engine.infrastructure.database import init_db
from assignment_engine.infrastructure.logging_config import setup_logging
from assignment_engine.api.routes import (
    assignment_rules_router,
    agents_router,
    assignments_router,
    health_router,
)

settings = get_settings()
logger = logging.getLogger(__name__)


# ============================================================
# 🔁 LIFESPAN
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"🚀 Iniciando motor de atribuição ({settings.environment})...")

    # Em produção o schema vem das migrations (alembic upgrade head)
    if settings.is_development:
        await init_db()
        logger.info("✅ Tabelas criadas!")

    yield

    logger.info("👋 Encerrando motor de atribuição...")


def create_app() -> FastAPI:
    # ============================================================
    # FASTAPI APP
    # ============================================================
    app = FastAPI(
        title="Assignment Engine",
        description="Regras de atribuição de registros para agentes, multi-tenant",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ============================================================
    # ⭐ CORS
    # ============================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ============================================================
    # ROTAS
    # ============================================================
    app.include_router(health_router)
    app.include_router(assignment_rules_router, prefix="/api/v1")
    app.include_router(agents_router, prefix="/api/v1")
    app.include_router(assignments_router, prefix="/api/v1")

    return app


app = create_app()
