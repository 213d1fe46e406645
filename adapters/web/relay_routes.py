"""
FastAPI 릴레이 라우터

브라우저 확장 프로그램의 요청을 Zoho로 전달하는 로컬 릴레이 엔드포인트입니다.
Zoho는 브라우저에서 직접 보낸 교차 출처 요청을 거부하므로,
확장 프로그램은 이 릴레이를 거쳐 토큰 교환과 메일 API를 호출합니다.

- POST /token: 리프레시 토큰 교환을 리전별 토큰 엔드포인트로 전달
- /api/*: 메서드, 경로, 본문을 그대로 리전별 메일 API 호스트로 전달

업스트림 응답의 상태 코드와 본문은 변형 없이 반환합니다.
"""

from typing import Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from core.domain import regions
from adapters.logger import create_logger

router = APIRouter(tags=["relay"])
logger = create_logger("relay")

REGION_HEADER = "x-zoho-region"
FORWARDED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


class UpstreamClient:
    """Zoho 업스트림 HTTPS 호출 클라이언트"""

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport

    async def request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        content: Optional[bytes] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.request(method, url, headers=headers, content=content, data=data)


def get_upstream_client(request: Request) -> UpstreamClient:
    """앱 상태에 등록된 업스트림 클라이언트를 반환합니다."""
    return request.app.state.upstream


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _passthrough(response: httpx.Response) -> Response:
    return Response(
        content=response.content,
        status_code=response.status_code,
        media_type="application/json",
    )


@router.post("/token")
async def forward_token(
    request: Request,
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    """리프레시 토큰 교환을 리전별 토큰 엔드포인트로 전달합니다."""
    try:
        body = await request.json()
    except ValueError:
        return _error(400, "요청 본문이 올바른 JSON이 아닙니다")
    if not isinstance(body, dict):
        return _error(400, "요청 본문은 JSON 객체여야 합니다")

    host = regions.resolve_auth_host(body.get("region"))
    form = {
        "refresh_token": body.get("refresh_token") or "",
        "client_id": body.get("client_id") or "",
        "client_secret": body.get("client_secret") or "",
        "grant_type": "refresh_token",
    }

    logger.info(f"Token refresh -> {host}")
    try:
        response = await upstream.request(
            "POST",
            f"https://{host}{regions.TOKEN_PATH}",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data=form,
        )
    except httpx.HTTPError as e:
        logger.error(f"Token error: {str(e)}")
        return _error(500, str(e) or type(e).__name__)

    logger.info(f"Token response: {response.status_code}")
    return _passthrough(response)


@router.api_route("/api/{rest:path}", methods=FORWARDED_METHODS)
async def forward_api(
    rest: str,
    request: Request,
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    """메일 API 요청을 리전별 API 호스트로 그대로 전달합니다."""
    authorization = request.headers.get("authorization")
    if not authorization:
        return _error(401, "No authorization header")

    host = regions.resolve_api_host(request.headers.get(REGION_HEADER))
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    query = request.url.query
    target = f"https://{host}{path}" + (f"?{query}" if query else "")

    logger.info(f"{request.method} {path} -> {host}")

    body = await request.body()
    try:
        response = await upstream.request(
            request.method,
            target,
            headers={
                "Authorization": authorization,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            content=body or None,
        )
    except httpx.HTTPError as e:
        logger.error(f"Error: {str(e)}")
        return _error(500, str(e) or type(e).__name__)

    logger.info(f"Response: {response.status_code}")
    return _passthrough(response)
