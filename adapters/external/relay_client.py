"""
릴레이 클라이언트 어댑터

로컬 릴레이 서버로 API 요청과 토큰 교환 요청을 보냅니다.
릴레이에 연결할 수 없으면 RelayUnavailable을 발생시켜
API 오류와 구분합니다.
"""

from typing import Optional

import httpx

from core.domain import regions
from core.domain.entities import Credentials, RelayRequest, RelayResponse, TokenResponse
from core.domain.errors import RelayUnavailable
from core.domain.ports import LoggerPort, RelayClientPort, TokenExchangePort
from .zoho_auth_client import parse_token_response


class RelayClientAdapter(RelayClientPort, TokenExchangePort):
    """릴레이 클라이언트 어댑터"""

    def __init__(
        self,
        base_url: str,
        logger: LoggerPort,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.logger = logger
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def forward(self, request: RelayRequest) -> RelayResponse:
        """API 요청을 릴레이로 전달하고 원본 응답을 반환합니다."""
        url = f"{self.base_url}{request.path}"
        try:
            async with self._client() as client:
                response = await client.request(
                    request.method,
                    url,
                    headers=request.headers,
                    content=request.body,
                )
        except httpx.TransportError as e:
            self.logger.error(f"릴레이 연결 실패: {self.base_url} - {str(e)}")
            raise RelayUnavailable(f"릴레이 서버에 연결할 수 없습니다 ({self.base_url}).")

        return RelayResponse(status_code=response.status_code, body=response.content)

    async def exchange_refresh_token(self, credentials: Credentials) -> TokenResponse:
        """릴레이의 /token 엔드포인트를 통해 토큰을 교환합니다."""
        body = {
            "refresh_token": credentials.refresh_token,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "region": regions.region_value(credentials.region),
        }
        try:
            async with self._client() as client:
                response = await client.post(f"{self.base_url}/token", json=body)
        except httpx.TransportError as e:
            self.logger.error(f"릴레이 연결 실패 (토큰 교환): {str(e)}")
            raise RelayUnavailable(f"릴레이 서버에 연결할 수 없습니다 ({self.base_url}).")

        self.logger.debug(f"릴레이 토큰 응답: {response.status_code}")
        return parse_token_response(response)
