"""Database connectivity check."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blogauth.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/db")
async def database_health(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Run SELECT 1 against the database.

    Returns 200 when the query yields exactly 1, otherwise 500. No retries.
    """
    try:
        result = await db.execute(text("SELECT 1"))
        value = result.scalar()
    except (SQLAlchemyError, OSError):
        logger.exception("Database connectivity check failed")
        value = None

    if value != 1:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Database connection failed"},
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"message": "Database connection successful"},
    )
