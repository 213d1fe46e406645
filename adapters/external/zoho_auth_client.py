"""
Zoho 인증 클라이언트 어댑터

Zoho 계정 서버(accounts.zoho.*)와의 OAuth 2.0 통신을 담당하는 어댑터입니다.
권한이 있는 백그라운드 컨텍스트에서 토큰 엔드포인트를 직접 호출합니다.
"""

from typing import Dict, Optional
from urllib.parse import urlencode

import httpx

from core.domain import regions
from core.domain.entities import Credentials, Region, TokenResponse
from core.domain.errors import ApiError
from core.domain.ports import LoggerPort, ZohoAuthClientPort


def parse_token_response(response: httpx.Response) -> TokenResponse:
    """토큰 엔드포인트 응답을 TokenResponse로 변환합니다."""
    try:
        payload = response.json()
    except ValueError:
        payload = {"error": response.text or f"HTTP {response.status_code}"}
    if not isinstance(payload, dict):
        payload = {"error": f"예상하지 못한 응답 형식: {type(payload).__name__}"}
    return TokenResponse(status_code=response.status_code, payload=payload)


class ZohoAuthClientAdapter(ZohoAuthClientPort):
    """Zoho 인증 클라이언트 어댑터"""

    def __init__(
        self,
        logger: LoggerPort,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.logger = logger
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def get_authorization_url(
        self,
        region: Region,
        client_id: str,
        redirect_uri: str,
        scope: str,
        state: Optional[str] = None,
    ) -> str:
        """인증 URL을 생성합니다."""
        params = {
            "client_id": client_id,
            "response_type": "code",
            "redirect_uri": redirect_uri,
            "scope": scope,
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state

        url = f"{regions.resolve(region).authorize}?{urlencode(params)}"
        self.logger.debug(f"생성된 인증 URL: {url}")
        return url

    async def _post_token(self, region: Optional[Region], data: Dict[str, str]) -> TokenResponse:
        url = regions.resolve(region).token
        self.logger.debug(f"토큰 요청: {url}, grant_type={data.get('grant_type')}")

        try:
            async with self._client() as client:
                response = await client.post(
                    url,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            self.logger.error(f"토큰 엔드포인트 연결 실패: {str(e)}")
            raise ApiError(f"토큰 엔드포인트에 연결할 수 없습니다: {str(e)}")

        result = parse_token_response(response)
        self.logger.debug(f"토큰 응답: {response.status_code}")
        return result

    async def exchange_refresh_token(self, credentials: Credentials) -> TokenResponse:
        """리프레시 토큰으로 액세스 토큰을 발급받습니다."""
        return await self._post_token(credentials.region, {
            "grant_type": "refresh_token",
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "refresh_token": credentials.refresh_token,
        })

    async def exchange_code_for_token(
        self,
        credentials: Credentials,
        code: str,
        redirect_uri: Optional[str] = None,
    ) -> TokenResponse:
        """인증 코드를 토큰으로 교환합니다."""
        data = {
            "grant_type": "authorization_code",
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "code": code,
        }
        if redirect_uri:
            data["redirect_uri"] = redirect_uri
        return await self._post_token(credentials.region, data)

    async def revoke_token(self, region: Region, access_token: str) -> bool:
        """액세스 토큰을 폐기합니다. 실패 시 False를 반환합니다."""
        url = regions.resolve(region).revoke
        try:
            async with self._client() as client:
                response = await client.post(url, params={"token": access_token})
        except httpx.HTTPError as e:
            self.logger.warning(f"토큰 폐기 요청 실패: {str(e)}")
            return False

        self.logger.debug(f"토큰 폐기 응답: {response.status_code}")
        return response.status_code < 400
