"""
자격 증명 저장소 유즈케이스

키/값 저장소 위에서 자격 증명, 토큰 상태, 계정/폴더 캐시, 환경설정을
엔티티로 변환해 읽고 씁니다. 저장 키 이름은 확장 프로그램의 저장 형식과 동일합니다.
시크릿 값(클라이언트 시크릿, 리프레시 토큰, 액세스 토큰)은 암호화하여 저장합니다.
"""

from typing import Any, Dict, List

from ..domain.entities import (
    Credentials,
    DiscoveryCache,
    Preferences,
    StorageScope,
    TokenState,
)
from ..domain.ports import EncryptionServicePort, KeyValueStorePort, LoggerPort
from ..domain.regions import normalize_region

# 로컬 범위 키
KEY_CLIENT_ID = "zohoClientId"
KEY_CLIENT_SECRET = "zohoClientSecret"
KEY_REFRESH_TOKEN = "zohoRefreshToken"
KEY_REGION = "region"
KEY_ACCESS_TOKEN = "accessToken"
KEY_TOKEN_EXPIRY = "tokenExpiry"
KEY_IS_LOGGED_IN = "isLoggedIn"
KEY_ACCOUNT_ID = "accountId"
KEY_INBOX_FOLDER_ID = "inboxFolderId"
KEY_USER_EMAIL = "userEmail"
KEY_LAST_EMAIL_IDS = "lastEmailIds"
KEY_LEGACY_REFRESH_TOKEN = "refreshToken"

# 동기화 범위 키
KEY_NOTIFICATIONS_ENABLED = "notificationsEnabled"
KEY_SOUND_ENABLED = "soundEnabled"
KEY_CHECK_INTERVAL = "checkInterval"
KEY_MAX_EMAILS = "maxEmails"

ENCRYPTED_KEYS = {KEY_CLIENT_SECRET, KEY_REFRESH_TOKEN, KEY_ACCESS_TOKEN}

SESSION_KEYS = [
    KEY_ACCESS_TOKEN,
    KEY_LEGACY_REFRESH_TOKEN,
    KEY_TOKEN_EXPIRY,
    KEY_IS_LOGGED_IN,
    KEY_ACCOUNT_ID,
    KEY_INBOX_FOLDER_ID,
    KEY_USER_EMAIL,
    KEY_LAST_EMAIL_IDS,
]


class CredentialStore:
    """자격 증명 저장소"""

    def __init__(
        self,
        storage: KeyValueStorePort,
        encryption_service: EncryptionServicePort,
        logger: LoggerPort,
    ):
        self.storage = storage
        self.encryption_service = encryption_service
        self.logger = logger

    async def _get_local(self, keys: List[str]) -> Dict[str, Any]:
        values = await self.storage.get(StorageScope.LOCAL, keys)
        for key in ENCRYPTED_KEYS.intersection(values):
            if values[key]:
                values[key] = await self.encryption_service.decrypt(values[key])
        return values

    async def _set_local(self, values: Dict[str, Any]) -> None:
        stored = dict(values)
        for key in ENCRYPTED_KEYS.intersection(stored):
            if stored[key]:
                stored[key] = await self.encryption_service.encrypt(stored[key])
        await self.storage.set(StorageScope.LOCAL, stored)

    async def load_credentials(self) -> Credentials:
        """저장된 자격 증명을 읽습니다."""
        values = await self._get_local(
            [KEY_CLIENT_ID, KEY_CLIENT_SECRET, KEY_REFRESH_TOKEN, KEY_REGION]
        )
        region = values.get(KEY_REGION)
        return Credentials(
            client_id=values.get(KEY_CLIENT_ID),
            client_secret=values.get(KEY_CLIENT_SECRET),
            refresh_token=values.get(KEY_REFRESH_TOKEN),
            region=normalize_region(region) if region else None,
        )

    async def save_credentials(self, credentials: Credentials) -> None:
        """자격 증명을 저장합니다. None인 필드는 저장하지 않습니다."""
        values: Dict[str, Any] = {}
        if credentials.client_id is not None:
            values[KEY_CLIENT_ID] = credentials.client_id
        if credentials.client_secret is not None:
            values[KEY_CLIENT_SECRET] = credentials.client_secret
        if credentials.refresh_token is not None:
            values[KEY_REFRESH_TOKEN] = credentials.refresh_token
        if credentials.region is not None:
            values[KEY_REGION] = credentials.region.value
        await self._set_local(values)
        self.logger.debug(f"자격 증명 저장: {sorted(values)}")

    async def load_token_state(self) -> TokenState:
        values = await self._get_local([KEY_ACCESS_TOKEN, KEY_TOKEN_EXPIRY, KEY_IS_LOGGED_IN])
        access_token = values.get(KEY_ACCESS_TOKEN) or None
        expiry = values.get(KEY_TOKEN_EXPIRY)
        # 만료 시각 없는 토큰은 신뢰하지 않음
        if access_token and expiry is None:
            access_token = None
        return TokenState(
            access_token=access_token,
            expires_at_ms=int(expiry) if access_token else None,
            logged_in=bool(values.get(KEY_IS_LOGGED_IN, False)),
        )

    async def save_token_state(self, token: TokenState) -> None:
        if token.access_token:
            await self._set_local({
                KEY_ACCESS_TOKEN: token.access_token,
                KEY_TOKEN_EXPIRY: token.expires_at_ms,
                KEY_IS_LOGGED_IN: token.logged_in,
            })
        else:
            await self.storage.remove(StorageScope.LOCAL, [KEY_ACCESS_TOKEN, KEY_TOKEN_EXPIRY])
            await self.storage.set(StorageScope.LOCAL, {KEY_IS_LOGGED_IN: token.logged_in})

    async def get_discovery(self) -> DiscoveryCache:
        values = await self.storage.get(
            StorageScope.LOCAL, [KEY_ACCOUNT_ID, KEY_INBOX_FOLDER_ID, KEY_USER_EMAIL]
        )
        return DiscoveryCache(
            account_id=values.get(KEY_ACCOUNT_ID),
            inbox_folder_id=values.get(KEY_INBOX_FOLDER_ID),
            user_email=values.get(KEY_USER_EMAIL),
        )

    async def save_discovery(self, discovery: DiscoveryCache) -> None:
        values = {
            KEY_ACCOUNT_ID: discovery.account_id,
            KEY_INBOX_FOLDER_ID: discovery.inbox_folder_id,
            KEY_USER_EMAIL: discovery.user_email,
        }
        await self.storage.set(
            StorageScope.LOCAL, {k: v for k, v in values.items() if v is not None}
        )

    async def get_last_email_ids(self) -> List[str]:
        values = await self.storage.get(StorageScope.LOCAL, [KEY_LAST_EMAIL_IDS])
        return list(values.get(KEY_LAST_EMAIL_IDS) or [])

    async def save_last_email_ids(self, message_ids: List[str]) -> None:
        await self.storage.set(StorageScope.LOCAL, {KEY_LAST_EMAIL_IDS: list(message_ids)})

    async def clear_session(self) -> None:
        """로그아웃 시 토큰과 계정 관련 값을 삭제합니다. 자격 증명은 유지됩니다."""
        await self.storage.remove(StorageScope.LOCAL, SESSION_KEYS)
        self.logger.debug("세션 저장값 삭제")

    async def clear_all(self) -> None:
        """로컬/동기화 범위의 모든 값을 삭제합니다."""
        await self.storage.clear(StorageScope.LOCAL)
        await self.storage.clear(StorageScope.SYNC)
        self.logger.info("모든 저장 데이터 삭제")

    async def load_preferences(self) -> Preferences:
        values = await self.storage.get(
            StorageScope.SYNC,
            [KEY_NOTIFICATIONS_ENABLED, KEY_SOUND_ENABLED, KEY_CHECK_INTERVAL, KEY_MAX_EMAILS],
        )
        defaults = Preferences()
        return Preferences(
            notifications_enabled=values.get(KEY_NOTIFICATIONS_ENABLED, defaults.notifications_enabled),
            sound_enabled=values.get(KEY_SOUND_ENABLED, defaults.sound_enabled),
            check_interval=values.get(KEY_CHECK_INTERVAL, defaults.check_interval),
            max_emails=values.get(KEY_MAX_EMAILS, defaults.max_emails),
        )

    async def save_preferences(self, preferences: Preferences) -> None:
        await self.storage.set(StorageScope.SYNC, {
            KEY_NOTIFICATIONS_ENABLED: preferences.notifications_enabled,
            KEY_SOUND_ENABLED: preferences.sound_enabled,
            KEY_CHECK_INTERVAL: preferences.check_interval,
            KEY_MAX_EMAILS: preferences.max_emails,
        })

