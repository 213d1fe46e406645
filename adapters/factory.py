"""
어댑터 팩토리

모든 어댑터들을 생성하고 의존성을 주입하는 팩토리 클래스입니다.
클린 아키텍처의 의존성 역전 원칙을 구현합니다.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from core.domain.ports import (
    ConfigPort,
    EncryptionServicePort,
    KeyValueStorePort,
    LoggerPort,
    NotifierPort,
    TokenExchangePort,
    ZohoAuthClientPort,
)
from core.domain.regions import normalize_region
from core.domain.session import AuthSession
from core.usecases.credential_store import CredentialStore
from core.usecases.mail_api import MailApiUseCase
from core.usecases.mail_checker import MailCheckerUseCase
from core.usecases.message_dispatcher import MessageDispatcher
from core.usecases.poll_scheduler import PollScheduler
from core.usecases.token_manager import TokenManagerUseCase

from .db.database import DatabaseAdapter
from .db.storage_repository import DatabaseKeyValueStoreAdapter
from .external.encryption_service import EncryptionServiceAdapter
from .external.memory_storage import InMemoryKeyValueStoreAdapter
from .external.relay_client import RelayClientAdapter
from .external.zoho_auth_client import ZohoAuthClientAdapter
from .logger import LoggerAdapter
from .notifier import ConsoleNotifierAdapter
from config.adapters import get_config


@dataclass
class MailServices:
    """하나의 인증 세션을 공유하는 유즈케이스 묶음"""

    session: AuthSession
    credential_store: CredentialStore
    token_manager: TokenManagerUseCase
    mail_api: MailApiUseCase
    mail_checker: MailCheckerUseCase
    dispatcher: MessageDispatcher


class AdapterFactory:
    """어댑터 팩토리"""

    def __init__(
        self,
        config: Optional[ConfigPort] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        storage: Optional[KeyValueStorePort] = None,
        notifier: Optional[NotifierPort] = None,
    ):
        self.config = config or get_config()
        self.transport = transport
        self._logger: Optional[LoggerPort] = None
        self._encryption_service: Optional[EncryptionServicePort] = None
        self._database: Optional[DatabaseAdapter] = None
        self._storage: Optional[KeyValueStorePort] = storage
        self._auth_client: Optional[ZohoAuthClientPort] = None
        self._relay_client: Optional[RelayClientAdapter] = None
        self._notifier: Optional[NotifierPort] = notifier

    def create_logger(self) -> LoggerPort:
        """로거 어댑터를 생성합니다."""
        if self._logger is None:
            self._logger = LoggerAdapter(
                name="zohomail",
                level=self.config.get_log_level(),
                format_string=self.config.get_log_format(),
            )
        return self._logger

    def create_encryption_service(self) -> EncryptionServicePort:
        """암호화 서비스 어댑터를 생성합니다."""
        if self._encryption_service is None:
            self._encryption_service = EncryptionServiceAdapter(
                encryption_key=self.config.get_encryption_key(),
                logger=self.create_logger(),
            )
        return self._encryption_service

    async def create_database(self) -> DatabaseAdapter:
        """데이터베이스 어댑터를 초기화하고 테이블을 준비합니다."""
        if self._database is None:
            database = DatabaseAdapter(self.config)
            await database.initialize()
            await database.create_tables()
            self._database = database
        return self._database

    async def create_storage(self) -> KeyValueStorePort:
        """설정된 백엔드의 키/값 저장소를 생성합니다."""
        if self._storage is None:
            logger = self.create_logger()
            if self.config.get_storage_backend() == "memory":
                logger.debug("메모리 저장소 사용")
                self._storage = InMemoryKeyValueStoreAdapter(logger=logger)
            else:
                database = await self.create_database()
                self._storage = DatabaseKeyValueStoreAdapter(database, logger)
        return self._storage

    async def create_credential_store(self) -> CredentialStore:
        """자격 증명 저장소를 생성합니다."""
        return CredentialStore(
            storage=await self.create_storage(),
            encryption_service=self.create_encryption_service(),
            logger=self.create_logger(),
        )

    def create_auth_client(self) -> ZohoAuthClientPort:
        """Zoho 인증 클라이언트 어댑터를 생성합니다."""
        if self._auth_client is None:
            self._auth_client = ZohoAuthClientAdapter(
                logger=self.create_logger(),
                timeout=self.config.get_http_timeout(),
                transport=self.transport,
            )
        return self._auth_client

    def create_relay_client(self) -> RelayClientAdapter:
        """릴레이 클라이언트 어댑터를 생성합니다."""
        if self._relay_client is None:
            self._relay_client = RelayClientAdapter(
                base_url=self.config.get_relay_url(),
                logger=self.create_logger(),
                timeout=self.config.get_http_timeout(),
                transport=self.transport,
            )
        return self._relay_client

    def create_token_exchange(self) -> TokenExchangePort:
        """설정된 경로(relay / direct)의 토큰 교환 어댑터를 반환합니다."""
        if self.config.get_token_exchange_mode() == "direct":
            return self.create_auth_client()
        return self.create_relay_client()

    def create_notifier(self) -> NotifierPort:
        if self._notifier is None:
            self._notifier = ConsoleNotifierAdapter()
        return self._notifier

    async def load_session(self, credential_store: CredentialStore) -> AuthSession:
        """저장된 자격 증명과 토큰 상태로 인증 세션을 구성합니다."""
        return AuthSession(
            credentials=await credential_store.load_credentials(),
            token=await credential_store.load_token_state(),
            discovery=await credential_store.get_discovery(),
            default_region=normalize_region(self.config.get_default_region()),
        )

    def create_token_manager(
        self,
        session: AuthSession,
        credential_store: CredentialStore,
    ) -> TokenManagerUseCase:
        """토큰 관리 유즈케이스를 생성합니다."""
        return TokenManagerUseCase(
            session=session,
            credential_store=credential_store,
            token_exchange=self.create_token_exchange(),
            auth_client=self.create_auth_client(),
            logger=self.create_logger(),
            refresh_skew_seconds=self.config.get_token_refresh_skew_seconds(),
            revoke_timeout=self.config.get_revoke_timeout(),
        )

    def create_mail_api(
        self,
        session: AuthSession,
        token_manager: TokenManagerUseCase,
        credential_store: CredentialStore,
    ) -> MailApiUseCase:
        """메일 API 유즈케이스를 생성합니다."""
        return MailApiUseCase(
            session=session,
            token_manager=token_manager,
            relay_client=self.create_relay_client(),
            credential_store=credential_store,
            logger=self.create_logger(),
        )

    async def create_mail_services(self) -> MailServices:
        """저장소에서 세션을 불러와 유즈케이스 묶음을 생성합니다."""
        logger = self.create_logger()
        credential_store = await self.create_credential_store()
        session = await self.load_session(credential_store)
        token_manager = self.create_token_manager(session, credential_store)
        mail_api = self.create_mail_api(session, token_manager, credential_store)
        mail_checker = MailCheckerUseCase(
            session=session,
            mail_api=mail_api,
            credential_store=credential_store,
            notifier=self.create_notifier(),
            logger=logger,
        )
        dispatcher = MessageDispatcher(
            mail_api=mail_api,
            mail_checker=mail_checker,
            logger=logger,
        )
        return MailServices(
            session=session,
            credential_store=credential_store,
            token_manager=token_manager,
            mail_api=mail_api,
            mail_checker=mail_checker,
            dispatcher=dispatcher,
        )

    def create_poll_scheduler(
        self,
        mail_checker: MailCheckerUseCase,
        interval_minutes: Optional[float] = None,
    ) -> PollScheduler:
        """메일 확인 스케줄러를 생성합니다."""
        return PollScheduler(
            job=mail_checker.check_for_new_emails,
            interval_minutes=interval_minutes or self.config.get_default_check_interval_minutes(),
            logger=self.create_logger(),
        )

    def get_config(self) -> ConfigPort:
        """설정 객체를 반환합니다."""
        return self.config

    async def close(self) -> None:
        """열린 데이터베이스 연결을 정리합니다."""
        if self._database is not None:
            await self._database.close()
            self._database = None


# 전역 팩토리 인스턴스
_factory: Optional[AdapterFactory] = None


def get_adapter_factory() -> AdapterFactory:
    """전역 어댑터 팩토리 인스턴스를 반환합니다."""
    global _factory
    if _factory is None:
        _factory = AdapterFactory()
    return _factory


def initialize_adapter_factory(
    config: Optional[ConfigPort] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    storage: Optional[KeyValueStorePort] = None,
    notifier: Optional[NotifierPort] = None,
) -> AdapterFactory:
    """어댑터 팩토리를 초기화합니다."""
    global _factory
    _factory = AdapterFactory(config, transport=transport, storage=storage, notifier=notifier)
    return _factory
