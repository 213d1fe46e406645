"""
메일 API 유즈케이스

Zoho Mail API 호출을 구성하고 로컬 릴레이를 통해 전달합니다.
- 유효한 액세스 토큰 첨부
- 401 응답 시 토큰 갱신 후 정확히 한 번 재시도
- 응답 봉투(envelope)의 data 필드 추출 및 오류 메시지 변환
- 계정/받은편지함 폴더 식별자 캐시
"""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

from ..domain.entities import (
    DiscoveryCache,
    MessageStatus,
    RelayRequest,
    RelayResponse,
    UpdateMode,
)
from ..domain.errors import ApiError, SessionExpired, TrashFolderNotFound
from ..domain.ports import LoggerPort, RelayClientPort
from ..domain.session import AuthSession
from .credential_store import CredentialStore
from .token_manager import TokenManagerUseCase

API_PREFIX = "/api"
REGION_HEADER = "X-Zoho-Region"
AUTH_SCHEME = "Zoho-oauthtoken"
HTTP_UNAUTHORIZED = 401
MAX_AUTH_RETRIES = 1

TRASH_FOLDER_NAMES = {"trash", "bin", "deleted items"}
TRASH_FOLDER_PATHS = {"/trash", "/bin"}
FLAG_IDS = {0, 1, 2, 3}  # 0: 없음, 1: 정보, 2: 중요, 3: 후속 조치


class MailApiUseCase:
    """메일 API 유즈케이스"""

    def __init__(
        self,
        session: AuthSession,
        token_manager: TokenManagerUseCase,
        relay_client: RelayClientPort,
        credential_store: CredentialStore,
        logger: LoggerPort,
        max_auth_retries: int = MAX_AUTH_RETRIES,
    ):
        self.session = session
        self.token_manager = token_manager
        self.relay_client = relay_client
        self.credential_store = credential_store
        self.logger = logger
        self.max_auth_retries = max_auth_retries

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        expect_list: bool = False,
    ) -> Any:
        """
        API를 호출하고 응답의 data 필드를 반환합니다.

        Args:
            endpoint: /api 이후의 경로 (쿼리 포함)
            method: HTTP 메서드
            body: JSON 요청 본문
            expect_list: data가 없을 때 빈 목록을 반환할지 여부

        Raises:
            RelayUnavailable: 릴레이에 연결할 수 없는 경우
            SessionExpired: 토큰 갱신이 실패했거나 재시도도 401인 경우
            ApiError: 그 밖의 비정상 응답
        """
        # 다른 호출의 401 복구가 끝날 때까지 대기
        lock = self.session.recovery_lock
        if lock.locked():
            async with lock:
                pass

        access_token = await self.token_manager.get_valid_access_token()
        response = await self._send(endpoint, method, body, access_token)

        if response.status_code == HTTP_UNAUTHORIZED:
            response = await self._recover_and_retry(endpoint, method, body, access_token)

        return self._parse(response, [] if expect_list else {})

    async def _recover_and_retry(
        self,
        endpoint: str,
        method: str,
        body: Optional[Dict[str, Any]],
        rejected_token: str,
    ) -> RelayResponse:
        async with self.session.recovery_lock:
            for attempt in range(self.max_auth_retries):
                # 대기하는 동안 다른 호출이 이미 갱신했으면 그 토큰을 사용
                if self.session.token.access_token in (None, rejected_token):
                    self.logger.info(f"401 수신, 토큰 갱신 후 재시도: {method} {endpoint}")
                    await self.token_manager.refresh()

                access_token = self.session.token.access_token
                response = await self._send(endpoint, method, body, access_token)
                if response.status_code != HTTP_UNAUTHORIZED:
                    return response
                rejected_token = access_token

        self.logger.warning(f"재시도 후에도 인증 실패: {method} {endpoint}")
        raise SessionExpired("인증이 만료되었습니다.")

    async def _send(
        self,
        endpoint: str,
        method: str,
        body: Optional[Dict[str, Any]],
        access_token: str,
    ) -> RelayResponse:
        request = RelayRequest(
            method=method,
            path=f"{API_PREFIX}{endpoint}",
            headers={
                "Authorization": f"{AUTH_SCHEME} {access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                REGION_HEADER: self.session.region.value,
            },
            body=json.dumps(body).encode("utf-8") if body is not None else None,
        )
        self.logger.debug(f"API 요청 (릴레이 경유): {method} {request.path}")
        response = await self.relay_client.forward(request)
        self.logger.debug(f"API 응답 상태: {response.status_code}")
        return response

    def _parse(self, response: RelayResponse, default: Any) -> Any:
        if not response.is_success():
            raise ApiError(self._error_message(response), response.status_code)

        if not response.body:
            return default

        try:
            payload = json.loads(response.body)
        except ValueError:
            raise ApiError("API 응답을 해석할 수 없습니다.", response.status_code)

        data = payload.get("data") if isinstance(payload, dict) else None
        return default if data is None else data

    def _error_message(self, response: RelayResponse) -> str:
        self.logger.error(f"API 오류 응답: {response.status_code} - {response.text}")
        try:
            payload = json.loads(response.body)
        except ValueError:
            payload = {"error": response.text}

        if isinstance(payload, dict):
            data = payload.get("data")
            if isinstance(data, dict) and data.get("errorMessage"):
                return str(data["errorMessage"])
            if payload.get("error"):
                return str(payload["error"])
        return f"API error: {response.status_code}"

    # 계정 / 폴더

    async def get_accounts(self) -> List[Dict[str, Any]]:
        return await self.call("/accounts", expect_list=True)

    async def get_folders(self, account_id: str) -> List[Dict[str, Any]]:
        return await self.call(f"/accounts/{quote(str(account_id))}/folders", expect_list=True)

    async def get_inbox_folder_id(self, account_id: str) -> Optional[str]:
        """받은편지함 폴더 ID를 찾습니다. 폴더 조회 실패 시 None을 반환합니다."""
        try:
            folders = await self.get_folders(account_id)
        except ApiError as e:
            self.logger.warning(f"폴더 조회 실패, 받은편지함 미지정: {e.message}")
            return None

        for folder in folders:
            name = str(folder.get("folderName") or "").lower()
            path = str(folder.get("path") or "").lower()
            if name == "inbox" or path == "/inbox":
                return folder.get("folderId")
        return None

    async def ensure_account(self) -> DiscoveryCache:
        """
        계정 ID를 캐시에서 읽거나 처음 한 번 조회해 저장합니다.

        동시에 여러 번 조회되더라도 같은 첫 번째 계정으로 수렴합니다.
        """
        discovery = self.session.discovery
        if discovery.account_id:
            return discovery

        accounts = [a for a in await self.get_accounts() if a.get("accountId")]
        if not accounts:
            self.logger.warning("조회된 메일 계정이 없습니다")
            return discovery

        first = accounts[0]
        discovery.account_id = str(first["accountId"])
        discovery.user_email = first.get("emailAddress") or first.get("primaryEmailAddress")
        await self.credential_store.save_discovery(discovery)
        self.logger.info(f"메일 계정 확인: {discovery.user_email}")
        return discovery

    async def ensure_inbox_folder(self) -> DiscoveryCache:
        discovery = await self.ensure_account()
        if discovery.account_id and not discovery.inbox_folder_id:
            folder_id = await self.get_inbox_folder_id(discovery.account_id)
            if folder_id:
                discovery.inbox_folder_id = str(folder_id)
                await self.credential_store.save_discovery(discovery)
        return discovery

    # 메시지 조회

    async def get_emails(
        self,
        account_id: str,
        folder_id: Optional[str] = None,
        limit: int = 20,
        start: int = 1,
        status: MessageStatus = MessageStatus.ALL,
        include_to: bool = True,
    ) -> List[Dict[str, Any]]:
        """메시지 목록을 최신순으로 조회합니다."""
        params = {
            "limit": str(limit),
            "start": str(start),
            "status": MessageStatus(status).value,
            "includeto": "true" if include_to else "false",
            "sortBy": "date",
            "sortorder": "false",
        }
        if folder_id:
            params["folderId"] = str(folder_id)

        return await self.call(
            f"/accounts/{quote(str(account_id))}/messages/view?{urlencode(params)}",
            expect_list=True,
        )

    async def get_email_content(
        self, account_id: str, folder_id: str, message_id: str
    ) -> Dict[str, Any]:
        return await self.call(
            f"/accounts/{quote(str(account_id))}/folders/{quote(str(folder_id))}"
            f"/messages/{quote(str(message_id))}/content?includeBlockContent=true"
        )

    async def get_email_details(self, account_id: str, message_id: str) -> Dict[str, Any]:
        return await self.call(
            f"/accounts/{quote(str(account_id))}/messages/{quote(str(message_id))}"
        )

    async def search_emails(
        self, account_id: str, search_key: str, limit: int = 25
    ) -> List[Dict[str, Any]]:
        params = {"searchKey": search_key, "sortorder": "false", "limit": str(limit)}
        return await self.call(
            f"/accounts/{quote(str(account_id))}/messages/search?{urlencode(params)}",
            expect_list=True,
        )

    async def send_email(
        self, account_id: str, to: str, subject: str, content: str
    ) -> Dict[str, Any]:
        self.logger.info(f"메일 발송: to={to}")
        return await self.call(
            f"/accounts/{quote(str(account_id))}/messages",
            method="POST",
            body={"toAddress": to, "subject": subject, "content": content},
        )

    # 메시지 변경

    async def _update_messages(
        self,
        account_id: str,
        mode: UpdateMode,
        message_ids: List[str],
        **extra: Any,
    ) -> Any:
        if isinstance(message_ids, (str, int)):
            message_ids = [message_ids]
        body: Dict[str, Any] = {"mode": mode.value, "messageId": [str(m) for m in message_ids]}
        body.update(extra)
        self.logger.debug(f"메시지 변경: mode={mode.value}, count={len(message_ids)}")
        return await self.call(
            f"/accounts/{quote(str(account_id))}/updatemessage", method="PUT", body=body
        )

    async def mark_as_read(self, account_id: str, message_ids: List[str]) -> Any:
        return await self._update_messages(account_id, UpdateMode.MARK_AS_READ, message_ids)

    async def mark_as_unread(self, account_id: str, message_ids: List[str]) -> Any:
        return await self._update_messages(account_id, UpdateMode.MARK_AS_UNREAD, message_ids)

    async def archive_emails(self, account_id: str, message_ids: List[str]) -> Any:
        return await self._update_messages(account_id, UpdateMode.ARCHIVE, message_ids)

    async def mark_as_spam(self, account_id: str, message_ids: List[str]) -> Any:
        return await self._update_messages(account_id, UpdateMode.MARK_AS_SPAM, message_ids)

    async def set_flag(self, account_id: str, message_ids: List[str], flag_id: int = 2) -> Any:
        if flag_id not in FLAG_IDS:
            raise ValueError(f"flag_id는 {sorted(FLAG_IDS)} 중 하나여야 합니다")
        return await self._update_messages(
            account_id, UpdateMode.SET_FLAG, message_ids, flagid=flag_id
        )

    async def delete_emails(self, account_id: str, message_ids: List[str]) -> Any:
        """
        메시지를 휴지통 폴더로 이동합니다.

        Raises:
            TrashFolderNotFound: 휴지통으로 인식되는 폴더가 없는 경우 (메시지는 이동하지 않음)
        """
        folders = await self.get_folders(account_id)
        trash = self._find_trash_folder(folders)
        if trash is None:
            names = [f.get("folderName") for f in folders]
            self.logger.error(f"휴지통 폴더 없음. 사용 가능한 폴더: {names}")
            raise TrashFolderNotFound()

        return await self._update_messages(
            account_id,
            UpdateMode.MOVE_MESSAGE,
            message_ids,
            destfolderId=trash.get("folderId"),
        )

    @staticmethod
    def _find_trash_folder(folders: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        for folder in folders:
            name = str(folder.get("folderName") or "").lower()
            path = str(folder.get("path") or "").lower()
            if name in TRASH_FOLDER_NAMES or path in TRASH_FOLDER_PATHS:
                return folder
        return None
