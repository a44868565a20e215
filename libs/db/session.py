from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from libs.db.config import AsyncSessionLocal


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an async database session for one unit of work.

    Controllers inject this (FastAPI ``Depends``) and hand the session to the
    engine operations, which commit on their own. Anything left uncommitted
    when the caller raises is rolled back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
