"""
로거 어댑터

Core 레이어의 LoggerPort를 구현하는 Python 표준 로깅 어댑터입니다.
출력되는 메시지에서 액세스 토큰과 리프레시 토큰 값을 가립니다.
"""

import logging
import re
import sys
from typing import Optional

from core.domain.ports import LoggerPort

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Authorization 헤더 값, 폼/쿼리/JSON 형태의 토큰 값
SECRET_PATTERNS = [
    re.compile(r"(Zoho-oauthtoken\s+)(\S+)"),
    re.compile(r"((?:access_token|refresh_token|client_secret|token)[\"']?\s*[=:]\s*[\"']?)([^\s&\"',}]+)"),
]


def redact(text: str, visible: int = 6) -> str:
    """문자열 안의 토큰 값을 앞 몇 글자만 남기고 가립니다."""

    def _mask(match: "re.Match") -> str:
        value = match.group(2)
        return match.group(1) + (value[:visible] + "***" if len(value) > visible else "***")

    for pattern in SECRET_PATTERNS:
        text = pattern.sub(_mask, text)
    return text


class TokenRedactionFilter(logging.Filter):
    """로그 레코드의 메시지에서 토큰 값을 가리는 필터"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class LoggerAdapter(LoggerPort):
    """Python 표준 로깅을 사용하는 로거 어댑터"""

    def __init__(
        self,
        name: str = "zohomail",
        level: str = "INFO",
        format_string: Optional[str] = None,
    ):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))

        # 핸들러가 없으면 콘솔 핸들러 추가
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
            handler.addFilter(TokenRedactionFilter())
            self.logger.addHandler(handler)

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.logger.error(message, extra=kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(message, extra=kwargs)


def create_logger(name: str = "zohomail", level: str = "INFO") -> LoggerPort:
    """로거 인스턴스를 생성합니다."""
    return LoggerAdapter(name, level)
