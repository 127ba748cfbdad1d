# chatapi/database.py
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.engine.url import make_url


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    url = make_url(database_url)
    # only SQLite needs that arg
    opts = {"check_same_thread": False} if url.drivername.startswith("sqlite") else {}

    return create_async_engine(database_url, echo=echo, connect_args=opts)


# Async session factory
def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Initialize DB (to call on startup)
async def init_db(engine: AsyncEngine):
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
