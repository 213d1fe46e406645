"""
포트 인터페이스 정의

클린 아키텍처의 핵심으로, Core 레이어와 외부 어댑터 간의 계약을 정의합니다.
모든 포트는 추상 기본 클래스(ABC)로 정의되어 구현을 강제합니다.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

from .entities import (
    Credentials,
    Region,
    RelayRequest,
    RelayResponse,
    StorageScope,
    TokenResponse,
)


class KeyValueStorePort(ABC):
    """범위별 키/값 저장소 포트"""

    @abstractmethod
    async def get(self, scope: StorageScope, keys: Iterable[str]) -> Dict[str, Any]:
        """키 목록 조회 (없는 키는 결과에서 빠짐)"""
        pass

    @abstractmethod
    async def set(self, scope: StorageScope, values: Dict[str, Any]) -> None:
        """여러 키 저장"""
        pass

    @abstractmethod
    async def remove(self, scope: StorageScope, keys: Iterable[str]) -> None:
        """여러 키 삭제"""
        pass

    @abstractmethod
    async def clear(self, scope: StorageScope) -> None:
        """범위 전체 삭제"""
        pass


class EncryptionServicePort(ABC):
    """암호화 서비스 포트"""

    @abstractmethod
    async def encrypt(self, data: str) -> str:
        """데이터 암호화"""
        pass

    @abstractmethod
    async def decrypt(self, encrypted_data: str) -> str:
        """데이터 복호화"""
        pass


class TokenExchangePort(ABC):
    """리프레시 토큰 교환 포트 (직접 호출 또는 릴레이 경유)"""

    @abstractmethod
    async def exchange_refresh_token(self, credentials: Credentials) -> TokenResponse:
        """리프레시 토큰으로 액세스 토큰 발급"""
        pass


class ZohoAuthClientPort(TokenExchangePort):
    """Zoho 인증 서버 직접 호출 포트"""

    @abstractmethod
    def get_authorization_url(
        self,
        region: Region,
        client_id: str,
        redirect_uri: str,
        scope: str,
        state: Optional[str] = None,
    ) -> str:
        """인증 URL 생성"""
        pass

    @abstractmethod
    async def exchange_code_for_token(
        self,
        credentials: Credentials,
        code: str,
        redirect_uri: Optional[str] = None,
    ) -> TokenResponse:
        """인증 코드를 토큰으로 교환"""
        pass

    @abstractmethod
    async def revoke_token(self, region: Region, access_token: str) -> bool:
        """액세스 토큰 폐기"""
        pass


class RelayClientPort(ABC):
    """로컬 릴레이 호출 포트"""

    @abstractmethod
    async def forward(self, request: RelayRequest) -> RelayResponse:
        """API 요청을 릴레이로 전달"""
        pass


class NotifierPort(ABC):
    """배지/알림 표시 포트 (UI 협력자)"""

    @abstractmethod
    def update_badge(self, text: str) -> None:
        """배지 텍스트 갱신"""
        pass

    @abstractmethod
    def notify(self, message: Dict[str, Any]) -> None:
        """새 메일 알림"""
        pass

    @abstractmethod
    def play_sound(self) -> None:
        """알림음 재생"""
        pass


class LoggerPort(ABC):
    """로거 포트"""

    @abstractmethod
    def info(self, message: str, **kwargs) -> None:
        """정보 로그"""
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs) -> None:
        """경고 로그"""
        pass

    @abstractmethod
    def error(self, message: str, **kwargs) -> None:
        """오류 로그"""
        pass

    @abstractmethod
    def debug(self, message: str, **kwargs) -> None:
        """디버그 로그"""
        pass


class ConfigPort(ABC):
    """설정 포트"""

    @abstractmethod
    def get_environment(self) -> str:
        """실행 환경"""
        pass

    @abstractmethod
    def is_debug(self) -> bool:
        """디버그 모드 여부"""
        pass

    @abstractmethod
    def get_database_url(self) -> str:
        """데이터베이스 URL"""
        pass

    @abstractmethod
    def get_storage_backend(self) -> str:
        """저장소 백엔드 (database / memory)"""
        pass

    @abstractmethod
    def get_encryption_key(self) -> str:
        """암호화 키"""
        pass

    @abstractmethod
    def get_log_level(self) -> str:
        """로그 레벨"""
        pass

    @abstractmethod
    def get_log_format(self) -> str:
        """로그 포맷"""
        pass

    @abstractmethod
    def get_relay_host(self) -> str:
        """릴레이 바인드 주소"""
        pass

    @abstractmethod
    def get_relay_port(self) -> int:
        """릴레이 포트"""
        pass

    @abstractmethod
    def get_relay_url(self) -> str:
        """릴레이 기본 URL"""
        pass

    @abstractmethod
    def get_token_exchange_mode(self) -> str:
        """토큰 교환 경로 (relay / direct)"""
        pass

    @abstractmethod
    def get_http_timeout(self) -> float:
        """HTTP 타임아웃 (초)"""
        pass

    @abstractmethod
    def get_revoke_timeout(self) -> float:
        """토큰 폐기 타임아웃 (초)"""
        pass

    @abstractmethod
    def get_token_refresh_skew_seconds(self) -> int:
        """토큰 만료 전 갱신 여유 시간 (초)"""
        pass

    @abstractmethod
    def get_default_check_interval_minutes(self) -> int:
        """기본 메일 확인 간격 (분)"""
        pass

    @abstractmethod
    def get_default_region(self) -> str:
        """기본 리전"""
        pass
