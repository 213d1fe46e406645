"""
FastAPI 릴레이 서버

브라우저 확장 프로그램이 Zoho OAuth/메일 API를 호출할 수 있도록
127.0.0.1:3847에서 동작하는 로컬 CORS 릴레이를 제공합니다.
"""

from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from adapters.web.relay_routes import UpstreamClient, router as relay_router
from adapters.logger import create_logger
from config.adapters import get_config

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Zoho-Region",
    "Access-Control-Max-Age": "86400",
}

logger = create_logger("relay_server")


def create_app(upstream: Optional[UpstreamClient] = None) -> FastAPI:
    """릴레이 앱을 생성합니다."""
    app = FastAPI(
        title="Zoho Mail 릴레이",
        description="브라우저 확장 프로그램용 로컬 Zoho OAuth/메일 API 릴레이",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.upstream = upstream or UpstreamClient(timeout=get_config().get_http_timeout())

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        # 프리플라이트는 경로와 무관하게 바로 응답
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # 지원하지 않는 경로/메서드 조합은 모두 404로 응답
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    app.include_router(relay_router)
    return app


app = create_app()


def run(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """릴레이 서버를 실행합니다."""
    config = get_config()
    host = host or config.get_relay_host()
    port = port or config.get_relay_port()

    logger.info(f"Zoho Mail 릴레이 시작: http://{host}:{port}")
    logger.info("확장 프로그램 사용 중에는 이 프로세스를 계속 실행해 두세요")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=config.get_log_level().lower(),
    )


if __name__ == "__main__":
    run()
