from pgvector.asyncpg import register_vector
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


def to_async_url(connection_string: str) -> str:
    """Point plain postgres URLs at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if connection_string.startswith(prefix):
            return "postgresql+asyncpg://" + connection_string[len(prefix):]
    return connection_string


def create_engine(connection_string: str, echo: bool = False) -> AsyncEngine:
    engine = create_async_engine(
        to_async_url(connection_string), echo=echo, pool_pre_ping=True
    )

    # asyncpg needs the vector codec on every new connection
    @event.listens_for(engine.sync_engine, "connect")
    def _register_vector(dbapi_connection, connection_record):
        dbapi_connection.run_async(register_vector)

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Talk to the DB through async sessions without refreshes after closed conn to avoid errors in async programming
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# All the models are "stored" in the Base class will be processed by the Engine
class Base(DeclarativeBase):
    pass
