"""
인증 세션

자격 증명과 토큰 상태를 함께 소유하는 세션 객체입니다.
토큰 관리자와 API 클라이언트가 같은 세션 객체를 공유하며,
진행 중인 토큰 갱신과 401 복구 절차를 세션 단위로 직렬화합니다.
"""

import asyncio
from typing import Optional

from .entities import Credentials, DiscoveryCache, Region, TokenState
from .regions import normalize_region


class AuthSession:
    """자격 증명 + 토큰 상태 + 동시성 가드"""

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        token: Optional[TokenState] = None,
        discovery: Optional[DiscoveryCache] = None,
        default_region: Optional[Region] = None,
    ):
        self.credentials = credentials or Credentials()
        self.default_region = default_region
        self.token = token or TokenState()
        self.discovery = discovery or DiscoveryCache()
        self.refresh_task: Optional[asyncio.Task] = None
        self.exchange_count = 0
        # 리프레시 토큰이 거부된 뒤 login() 전까지 True
        self.expired = False
        # 로그아웃마다 증가, 진행 중이던 교환 결과를 폐기하는 기준
        self.generation = 0
        self._recovery_lock: Optional[asyncio.Lock] = None

    @property
    def region(self) -> Region:
        return normalize_region(self.credentials.region or self.default_region)

    @property
    def recovery_lock(self) -> asyncio.Lock:
        # 이벤트 루프가 생긴 뒤에 만들어야 함
        if self._recovery_lock is None:
            self._recovery_lock = asyncio.Lock()
        return self._recovery_lock

    def is_logged_in(self) -> bool:
        return self.token.logged_in and bool(self.token.access_token)

    def refresh_in_flight(self) -> bool:
        return self.refresh_task is not None and not self.refresh_task.done()

    def clear_token(self) -> None:
        self.token = TokenState()

    def clear_discovery(self) -> None:
        self.discovery = DiscoveryCache()

    def invalidate(self) -> None:
        """리프레시 토큰이 거부된 상태로 전환합니다."""
        self.token = TokenState()
        self.expired = True

    def reset(self) -> None:
        """로그아웃: 토큰과 탐색 캐시를 비우고 진행 중인 갱신과의 연결을 끊습니다."""
        self.generation += 1
        self.refresh_task = None
        self.expired = False
        self.clear_token()
        self.clear_discovery()
