"""
Database Module
===============

Async PostgreSQL access (asyncpg + SQLAlchemy 2.0).

Usage:
    from shared.database import get_postgres_session

    # In FastAPI
    @app.get("/example")
    async def example(
        db: AsyncSession = Depends(get_postgres_session),
    ):
        result = await db.execute(select(ResourceModel))
        ...
"""

from shared.database.postgres import (
    Base,
    PostgresClient,
    get_postgres_session,
    postgres_session,
)


__all__ = [
    "get_postgres_session",
    "postgres_session",
    "PostgresClient",
    "Base",
]
