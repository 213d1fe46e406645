"""
도메인 엔티티 정의

Zoho Mail 체커의 핵심 개념을 나타내는 엔티티들을 정의합니다.
모든 엔티티는 Pydantic 모델을 기반으로 하여 타입 안정성을 보장합니다.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def now_ms() -> int:
    """현재 시각을 epoch 밀리초로 반환합니다."""
    return int(time.time() * 1000)


class Region(str, Enum):
    """Zoho 데이터센터 리전"""
    COM = "com"
    IN = "in"
    EU = "eu"
    AU = "au"


class StorageScope(str, Enum):
    """저장소 범위 (로컬 전용 / 기기 간 동기화)"""
    LOCAL = "local"
    SYNC = "sync"


class MessageStatus(str, Enum):
    """메시지 목록 조회 상태 필터"""
    ALL = "all"
    READ = "read"
    UNREAD = "unread"


class UpdateMode(str, Enum):
    """updatemessage API 모드"""
    MARK_AS_READ = "markAsRead"
    MARK_AS_UNREAD = "markAsUnread"
    MOVE_MESSAGE = "moveMessage"
    ARCHIVE = "archive"
    MARK_AS_SPAM = "markAsSpam"
    SET_FLAG = "setFlag"


class Credentials(BaseModel):
    """사용자가 설정한 OAuth 자격 증명"""

    client_id: Optional[str] = Field(None, description="Zoho API 클라이언트 ID")
    client_secret: Optional[str] = Field(None, description="Zoho API 클라이언트 시크릿")
    refresh_token: Optional[str] = Field(None, description="리프레시 토큰")
    region: Optional[Region] = Field(None, description="데이터센터 리전")

    @field_validator("client_id", "client_secret", "refresh_token")
    @classmethod
    def strip_blank(cls, v):
        """공백 문자열은 미설정으로 취급"""
        if v is None:
            return None
        v = v.strip()
        return v or None

    def is_complete(self) -> bool:
        """토큰 교환에 필요한 값이 모두 있는지 확인"""
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def missing_fields(self) -> List[str]:
        """누락된 필드 이름 목록"""
        names = ["client_id", "client_secret", "refresh_token"]
        return [name for name in names if not getattr(self, name)]


class TokenState(BaseModel):
    """액세스 토큰 상태"""

    access_token: Optional[str] = Field(None, description="액세스 토큰")
    expires_at_ms: Optional[int] = Field(None, description="만료 시각 (epoch ms)")
    logged_in: bool = Field(default=False, description="로그인 여부")

    def is_fresh(self, skew_ms: int, now: Optional[int] = None) -> bool:
        """만료 여유 시간을 고려해 캐시된 토큰을 그대로 쓸 수 있는지 확인"""
        if not self.access_token or self.expires_at_ms is None:
            return False
        current = now if now is not None else now_ms()
        return current < self.expires_at_ms - skew_ms

    def expires_in_seconds(self, now: Optional[int] = None) -> Optional[int]:
        """남은 유효 시간 (초)"""
        if self.expires_at_ms is None:
            return None
        current = now if now is not None else now_ms()
        return max(0, (self.expires_at_ms - current) // 1000)


class AuthEndpoints(BaseModel):
    """리전별 OAuth 엔드포인트"""

    model_config = ConfigDict(frozen=True)

    authorize: str
    token: str
    revoke: str


class TokenResponse(BaseModel):
    """토큰 엔드포인트 응답 (상태 코드 + 원본 페이로드)"""

    status_code: int
    payload: Dict[str, Any] = Field(default_factory=dict)

    @property
    def access_token(self) -> Optional[str]:
        return self.payload.get("access_token")

    @property
    def error(self) -> Optional[str]:
        return self.payload.get("error")

    @property
    def expires_in(self) -> Optional[int]:
        value = self.payload.get("expires_in")
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def is_success(self) -> bool:
        return 200 <= self.status_code < 300 and not self.error and bool(self.access_token)


class RelayRequest(BaseModel):
    """릴레이를 통해 전달되는 단일 API 요청"""

    method: str = "GET"
    path: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[bytes] = None


class RelayResponse(BaseModel):
    """릴레이가 돌려준 원본 응답"""

    status_code: int
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class DiscoveryCache(BaseModel):
    """계정/폴더 식별자 캐시"""

    account_id: Optional[str] = None
    inbox_folder_id: Optional[str] = None
    user_email: Optional[str] = None


class Preferences(BaseModel):
    """동기화 범위에 저장되는 사용자 환경설정"""

    notifications_enabled: bool = True
    sound_enabled: bool = False
    check_interval: int = Field(default=5, ge=1, description="메일 확인 간격 (분)")
    max_emails: int = Field(default=25, ge=1, le=200, description="목록에 표시할 최대 메일 수")


class ActionMessage(BaseModel):
    """UI 프로세스가 백그라운드로 보내는 요청 메시지"""

    model_config = ConfigDict(populate_by_name=True)

    action: str
    message_ids: List[str] = Field(default_factory=list, alias="messageIds")
    limit: Optional[int] = None
    status: Optional[MessageStatus] = None
    count: Optional[int] = None

    @field_validator("message_ids", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        """단일 ID도 목록으로 받음"""
        if v is None:
            return []
        if isinstance(v, (str, int)):
            return [str(v)]
        return [str(item) for item in v]


class MailCheckResult(BaseModel):
    """주기적 메일 확인 결과"""

    unread_count: int = 0
    badge_text: str = ""
    new_message_ids: List[str] = Field(default_factory=list)
    notified_message_ids: List[str] = Field(default_factory=list)
    skipped: bool = False
    error: Optional[str] = None
