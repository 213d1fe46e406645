"""
데이터베이스 연결 및 세션 관리

키/값 저장소가 사용하는 SQLAlchemy 비동기 엔진과 세션을 관리합니다.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from core.domain.ports import ConfigPort
from .models import Base


def engine_options(database_url: str) -> Dict[str, Any]:
    """데이터베이스 종류에 맞는 엔진 옵션을 반환합니다."""
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url:
            # 메모리 DB는 연결 하나를 공유해야 테이블이 유지됨
            return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        return {}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


class DatabaseAdapter:
    """데이터베이스 어댑터"""

    def __init__(self, config: ConfigPort):
        self.config = config
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    async def initialize(self) -> None:
        """데이터베이스 연결을 초기화합니다."""
        database_url = self.config.get_database_url()
        self.engine = create_async_engine(database_url, echo=False, **engine_options(database_url))
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def _require_engine(self) -> AsyncEngine:
        if self.engine is None:
            raise RuntimeError("데이터베이스가 초기화되지 않았습니다")
        return self.engine

    async def create_tables(self) -> None:
        """저장소 테이블을 생성합니다."""
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """저장소 테이블을 삭제합니다."""
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """읽기용 세션을 생성합니다."""
        if self.session_factory is None:
            raise RuntimeError("데이터베이스가 초기화되지 않았습니다")

        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """블록이 정상 종료되면 커밋하고, 예외가 나면 롤백하는 세션을 생성합니다."""
        async with self.get_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """데이터베이스 연결을 종료합니다."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
