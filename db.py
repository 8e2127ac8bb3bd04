# db.py
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator, Optional
from config import settings
from models import Base


def build_engine(url: str) -> AsyncEngine:
    """
    Движок под URL. SQLite в памяти живёт ровно пока жив единственный
    коннект, поэтому для него StaticPool.
    """
    kwargs = {}
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    return create_async_engine(url, echo=False, future=True, **kwargs)


def build_sessionmaker(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)

async_session = build_sessionmaker(engine)

async def init_db(target: Optional[AsyncEngine] = None) -> None:
    # Создание таблиц
    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session
