"""
HEALTH CHECK
============
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from assignment_engine.infrastructure.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check simples: 200 se o banco responde, 503 caso contrário.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"❌ Health check falhou: {e}")
        raise HTTPException(status_code=503, detail={"status": "unhealthy", "database": "error"})
    return {"status": "healthy", "database": "ok"}
