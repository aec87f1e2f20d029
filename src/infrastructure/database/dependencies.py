"""FastAPI dependency injection for database session management.

Each request that declares ``DatabaseSession`` gets one session whose
transaction commits after the handler returns and rolls back if it raises.
Claim events registered during the request are published from the session's
``after_commit`` hook, so they only leave the process once the commit
succeeded.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.session import get_async_session


async def get_db() -> AsyncGenerator[AsyncSession]:
    """Provide a database session for FastAPI dependency injection.

    Example:
        @router.get("/benefits/{claim_id}")
        async def get_claim(claim_id: int, db: DatabaseSession) -> ...:
            ...
    """
    async with get_async_session() as session:
        yield session


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
