"""
메모리 기반 키/값 저장소 어댑터

데이터베이스 없이 동작하는 저장소입니다. 테스트와 일회성 실행에 사용합니다.
"""

import copy
from typing import Any, Dict, Iterable

from core.domain.entities import StorageScope
from core.domain.ports import KeyValueStorePort, LoggerPort


class InMemoryKeyValueStoreAdapter(KeyValueStorePort):
    """메모리 기반 키/값 저장소 어댑터"""

    def __init__(self, logger: LoggerPort):
        self.logger = logger
        self._data: Dict[StorageScope, Dict[str, Any]] = {
            StorageScope.LOCAL: {},
            StorageScope.SYNC: {},
        }

    async def get(self, scope: StorageScope, keys: Iterable[str]) -> Dict[str, Any]:
        bucket = self._data[scope]
        return {key: copy.deepcopy(bucket[key]) for key in keys if key in bucket}

    async def set(self, scope: StorageScope, values: Dict[str, Any]) -> None:
        self._data[scope].update(copy.deepcopy(values))
        self.logger.debug(f"메모리 저장소 저장: scope={scope.value}, keys={sorted(values)}")

    async def remove(self, scope: StorageScope, keys: Iterable[str]) -> None:
        bucket = self._data[scope]
        for key in keys:
            bucket.pop(key, None)

    async def clear(self, scope: StorageScope) -> None:
        self._data[scope].clear()

    def snapshot(self, scope: StorageScope) -> Dict[str, Any]:
        """현재 저장된 값의 복사본"""
        return copy.deepcopy(self._data[scope])
