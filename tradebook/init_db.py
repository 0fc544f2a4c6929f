import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from tradebook.database import get_engine
from tradebook import models


async def init_db(engine: Optional[AsyncEngine] = None):
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)

if __name__ == "__main__":
    asyncio.run(init_db())
