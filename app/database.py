"""엔진과 세션 — API 공용 엔진과 알림 클라이언트용 팩토리.

The API process shares one engine through ``get_db``. The notifier builds its
own with ``create_session_factory`` so it can point at another database.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def create_session_factory(database_url: str) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """URL에 대한 (엔진, 세션 팩토리)를 만듭니다."""
    eng: AsyncEngine = create_async_engine(
        database_url,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        # pgbouncer 트랜잭션 모드와 호환 (No prepared statement cache behind a transaction pooler)
        connect_args={"statement_cache_size": 0},
    )
    return eng, async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)


engine, async_session = create_session_factory(settings.DATABASE_URL)


class Base(DeclarativeBase):
    """ORM 모델 공통 베이스 (Shared declarative base)."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청마다 세션 하나를 열고 응답 후 닫습니다 (One session per request)."""
    async with async_session() as session:
        yield session
