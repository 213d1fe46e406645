"""
토큰 관리 유즈케이스

액세스 토큰의 수명 주기를 관리합니다.
- 리프레시 토큰 교환을 통한 로그인/갱신
- 만료 여유 시간을 고려한 캐시 토큰 재사용
- 동시 갱신 요청의 단일화 (진행 중인 교환 결과를 공유)
- 로그아웃 시 토큰 폐기 및 세션 정리
"""

import asyncio
from typing import Callable, Optional, Set

from ..domain.entities import Credentials, Region, TokenResponse, TokenState, now_ms
from ..domain.errors import ApiError, CredentialsMissing, MailCheckerError, SessionExpired
from ..domain.ports import LoggerPort, TokenExchangePort, ZohoAuthClientPort
from ..domain.session import AuthSession
from .credential_store import CredentialStore

DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
DEFAULT_REFRESH_SKEW_SECONDS = 300
DEFAULT_SCOPE = "ZohoMail.messages.ALL,ZohoMail.folders.ALL,ZohoMail.accounts.ALL"


class TokenManagerUseCase:
    """토큰 관리 유즈케이스"""

    def __init__(
        self,
        session: AuthSession,
        credential_store: CredentialStore,
        token_exchange: TokenExchangePort,
        auth_client: ZohoAuthClientPort,
        logger: LoggerPort,
        refresh_skew_seconds: int = DEFAULT_REFRESH_SKEW_SECONDS,
        revoke_timeout: float = 5.0,
        clock: Callable[[], int] = now_ms,
    ):
        self.session = session
        self.credential_store = credential_store
        self.token_exchange = token_exchange
        self.auth_client = auth_client
        self.logger = logger
        self.refresh_skew_ms = refresh_skew_seconds * 1000
        self.revoke_timeout = revoke_timeout
        self.clock = clock
        self._background_tasks: Set[asyncio.Task] = set()

    def _require_credentials(self) -> Credentials:
        credentials = self.session.credentials
        if not credentials.is_complete():
            missing = ", ".join(credentials.missing_fields())
            self.logger.warning(f"자격 증명 누락: {missing}")
            raise CredentialsMissing(f"자격 증명이 설정되지 않았습니다 (누락: {missing}).")
        return credentials

    def _with_region(self, credentials: Credentials) -> Credentials:
        if credentials.region is not None:
            return credentials
        return credentials.model_copy(update={"region": self.session.region})

    async def get_valid_access_token(self) -> str:
        """
        유효한 액세스 토큰을 반환합니다.

        캐시된 토큰의 만료까지 여유 시간(기본 5분) 이상 남았으면 그대로 반환하고,
        그렇지 않으면 토큰을 갱신합니다.

        Raises:
            CredentialsMissing: 자격 증명이 불완전한 경우
            SessionExpired: 리프레시 토큰이 거부된 경우
        """
        self._require_credentials()

        token = self.session.token
        if token.is_fresh(self.refresh_skew_ms, self.clock()):
            return token.access_token

        self.logger.debug("액세스 토큰 만료 임박 또는 없음, 갱신 시작")
        return await self.refresh()

    async def refresh(self) -> str:
        """
        리프레시 토큰으로 새 액세스 토큰을 발급받습니다.

        이미 진행 중인 교환이 있으면 새 교환을 시작하지 않고 그 결과를 기다립니다.

        Returns:
            새 액세스 토큰

        Raises:
            SessionExpired: 리프레시 토큰이 이미 거부되었거나 교환 중 로그아웃된 경우
        """
        if self.session.refresh_in_flight():
            self.logger.debug("진행 중인 토큰 갱신 결과 대기")
            return await asyncio.shield(self.session.refresh_task)

        if self.session.expired:
            # 거부된 리프레시 토큰으로 다시 교환하지 않음
            raise SessionExpired("세션이 만료되었습니다. 다시 로그인하세요.")

        self._require_credentials()

        task = asyncio.ensure_future(self._exchange())
        self.session.refresh_task = task
        try:
            return await asyncio.shield(task)
        finally:
            if self.session.refresh_task is task and task.done():
                self.session.refresh_task = None

    async def login(self, region: Optional[Region] = None) -> TokenState:
        """
        저장된 자격 증명으로 최초 토큰을 발급받습니다.

        자격 증명이 불완전하면 네트워크 호출 전에 실패합니다.

        Args:
            region: 자격 증명에 리전이 없을 때 사용할 리전

        Returns:
            새 토큰 상태
        """
        self.logger.info("로그인 시작")
        credentials = self._require_credentials()

        if credentials.region is None and region is not None:
            credentials.region = region
            await self.credential_store.save_credentials(credentials)

        self.session.clear_token()
        self.session.expired = False
        await self.refresh()

        self.logger.info(f"로그인 완료: region={self.session.region.value}")
        return self.session.token

    async def logout(self) -> None:
        """
        토큰 폐기를 요청하고 세션 상태를 정리합니다.

        폐기 요청은 결과를 기다리지 않으며 실패해도 무시됩니다.
        """
        access_token = self.session.token.access_token
        region = self.session.region

        if access_token:
            task = asyncio.ensure_future(self._revoke_quietly(region, access_token))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

        if self.session.refresh_in_flight():
            self.logger.info("진행 중인 토큰 갱신 결과는 폐기됩니다")
        self.session.reset()
        await self.credential_store.clear_session()
        self.logger.info("로그아웃 완료")

    async def drain_background_tasks(self) -> None:
        """대기 중인 토큰 폐기 요청이 끝날 때까지 기다립니다."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def is_logged_in(self) -> bool:
        return self.session.is_logged_in()

    def get_authorization_url(
        self,
        redirect_uri: str,
        scope: str = DEFAULT_SCOPE,
        state: Optional[str] = None,
    ) -> str:
        """인증 코드 발급용 URL을 생성합니다."""
        credentials = self.session.credentials
        if not credentials.client_id:
            raise CredentialsMissing("클라이언트 ID가 설정되지 않았습니다.")
        return self.auth_client.get_authorization_url(
            self.session.region, credentials.client_id, redirect_uri, scope, state
        )

    async def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> TokenState:
        """
        인증 코드를 토큰으로 교환하고 발급된 리프레시 토큰을 저장합니다.

        Raises:
            CredentialsMissing: 클라이언트 ID/시크릿이 없는 경우
            ApiError: 인증 서버가 코드를 거부한 경우
        """
        credentials = self.session.credentials
        if not credentials.client_id or not credentials.client_secret:
            raise CredentialsMissing("클라이언트 ID 또는 시크릿이 설정되지 않았습니다.")

        self.logger.info("인증 코드 교환 시작")
        response = await self.auth_client.exchange_code_for_token(
            self._with_region(credentials), code, redirect_uri
        )
        if not response.is_success():
            error = response.error or f"HTTP {response.status_code}"
            self.logger.error(f"인증 코드 교환 실패: {error}")
            raise ApiError(f"인증 코드 교환 실패: {error}", response.status_code)

        refresh_token = response.payload.get("refresh_token")
        if refresh_token:
            credentials.refresh_token = refresh_token
            await self.credential_store.save_credentials(credentials)

        await self._store_token(response)
        self.logger.info("인증 코드 교환 완료")
        return self.session.token

    async def _exchange(self) -> str:
        credentials = self._with_region(self.session.credentials)
        generation = self.session.generation
        self.session.exchange_count += 1
        self.logger.info(f"토큰 교환 요청: region={self.session.region.value}")

        response = await self.token_exchange.exchange_refresh_token(credentials)

        if generation != self.session.generation:
            self.logger.warning("토큰 교환 중 로그아웃됨, 교환 결과 폐기")
            raise SessionExpired("토큰 교환 중 로그아웃되었습니다.")

        if not response.is_success():
            if response.status_code >= 500 and not response.access_token:
                # 릴레이/업스트림 장애는 리프레시 토큰 무효로 보지 않음
                message = response.error or f"HTTP {response.status_code}"
                self.logger.error(f"토큰 엔드포인트 오류: {message}")
                raise ApiError(f"토큰 엔드포인트 오류: {message}", response.status_code)

            reason = response.error or "access_token 없음"
            self.logger.warning(f"리프레시 토큰 거부됨: {reason}")
            await self._invalidate()
            raise SessionExpired(f"세션이 만료되었습니다 ({reason}).")

        await self._store_token(response)
        self.logger.info("토큰 교환 완료")
        return self.session.token.access_token

    async def _store_token(self, response: TokenResponse) -> None:
        lifetime = response.expires_in or DEFAULT_TOKEN_LIFETIME_SECONDS
        self.session.token = TokenState(
            access_token=response.access_token,
            expires_at_ms=self.clock() + lifetime * 1000,
            logged_in=True,
        )
        self.session.expired = False
        await self.credential_store.save_token_state(self.session.token)

    async def _invalidate(self) -> None:
        self.session.invalidate()
        await self.credential_store.save_token_state(self.session.token)

    async def _revoke_quietly(self, region: Region, access_token: str) -> None:
        try:
            revoked = await asyncio.wait_for(
                self.auth_client.revoke_token(region, access_token),
                timeout=self.revoke_timeout,
            )
        except asyncio.TimeoutError:
            self.logger.warning("토큰 폐기 시간 초과 (무시)")
            return
        except MailCheckerError as e:
            self.logger.warning(f"토큰 폐기 실패 (무시): {e.message}")
            return
        if not revoked:
            self.logger.warning("토큰 폐기 실패 (무시)")
