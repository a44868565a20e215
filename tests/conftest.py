import pytest_asyncio
from tests.factories import Enrollment, enroll


@pytest_asyncio.fixture
async def enrollment(db_session) -> Enrollment:
    """An active customer on the default Mon/Wed January 2025 schedule."""
    return await enroll(db_session)
