from typing import Annotated, AsyncGenerator

from fastapi import Depends

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

Base = declarative_base()


def _engine_options(database_url: str) -> dict:
    """
    드라이버별 엔진 옵션.
    asyncpg는 ssl / 커넥션 재활용 옵션을 받고, aiosqlite(로컬/테스트)는 기본값만 사용합니다.
    """
    if database_url.startswith("postgresql+asyncpg"):
        return {
            "pool_pre_ping": True,        # 연결 사전 체크
            "pool_recycle": 1800,         # 30분마다 재연결해 RDS 타임아웃 방지
            "connect_args": {"ssl": settings.POSTGRES_SSLMODE == "require"},
        }
    return {}


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

async_session_factory = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """사용량 테이블 생성 (이미 있으면 건너뜀)"""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as sess:  # async with으로 자동 commit/rollback 처리
        yield sess

# Annotated 별칭: 다른 모듈에서 `db: SessionDep` 만 적으면 세션이 주입됩니다.
SessionDep = Annotated[AsyncSession, Depends(get_db)]
