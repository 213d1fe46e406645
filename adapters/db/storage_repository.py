"""
데이터베이스 기반 키/값 저장소 어댑터

자격 증명, 토큰 상태, 환경설정을 범위(local/sync)별로 저장합니다.
"""

from typing import Any, Dict, Iterable

from sqlalchemy import and_, delete
from sqlalchemy.future import select

from core.domain.entities import StorageScope
from core.domain.ports import KeyValueStorePort, LoggerPort
from .database import DatabaseAdapter
from .models import StorageEntryModel


class DatabaseKeyValueStoreAdapter(KeyValueStorePort):
    """데이터베이스 기반 키/값 저장소 어댑터"""

    def __init__(self, db_adapter: DatabaseAdapter, logger: LoggerPort):
        self.db_adapter = db_adapter
        self.logger = logger

    async def get(self, scope: StorageScope, keys: Iterable[str]) -> Dict[str, Any]:
        """키 목록을 조회합니다."""
        keys = list(keys)
        if not keys:
            return {}

        async with self.db_adapter.get_session() as session:
            stmt = select(StorageEntryModel).where(
                and_(
                    StorageEntryModel.scope == scope.value,
                    StorageEntryModel.key.in_(keys),
                )
            )
            result = await session.execute(stmt)
            entries = result.scalars().all()

        return {entry.key: entry.value for entry in entries}

    async def set(self, scope: StorageScope, values: Dict[str, Any]) -> None:
        """여러 키를 저장합니다. 기존 키는 덮어씁니다."""
        if not values:
            return

        async with self.db_adapter.transaction() as session:
            stmt = select(StorageEntryModel).where(
                and_(
                    StorageEntryModel.scope == scope.value,
                    StorageEntryModel.key.in_(list(values)),
                )
            )
            result = await session.execute(stmt)
            existing = {entry.key: entry for entry in result.scalars().all()}

            for key, value in values.items():
                if key in existing:
                    existing[key].value = value
                else:
                    session.add(StorageEntryModel(scope=scope.value, key=key, value=value))

        self.logger.debug(f"저장소 저장: scope={scope.value}, keys={sorted(values)}")

    async def remove(self, scope: StorageScope, keys: Iterable[str]) -> None:
        """여러 키를 삭제합니다."""
        keys = list(keys)
        if not keys:
            return

        async with self.db_adapter.transaction() as session:
            stmt = delete(StorageEntryModel).where(
                and_(
                    StorageEntryModel.scope == scope.value,
                    StorageEntryModel.key.in_(keys),
                )
            )
            await session.execute(stmt)

        self.logger.debug(f"저장소 삭제: scope={scope.value}, keys={sorted(keys)}")

    async def clear(self, scope: StorageScope) -> None:
        """범위 전체를 삭제합니다."""
        async with self.db_adapter.transaction() as session:
            stmt = delete(StorageEntryModel).where(StorageEntryModel.scope == scope.value)
            await session.execute(stmt)

        self.logger.debug(f"저장소 범위 삭제: scope={scope.value}")
