"""
설정 어댑터

환경 변수와 .env 파일에서 Zoho 메일 체커 설정을 읽어옵니다.
ENVIRONMENT 값에 따라 개발/운영/테스트 설정 클래스를 선택합니다.
"""

import os
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.ports import ConfigPort

STORAGE_BACKENDS = ("database", "memory")
TOKEN_EXCHANGE_MODES = ("relay", "direct")


class BaseConfig(BaseSettings, ConfigPort):
    """기본 설정 클래스"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 환경 설정
    environment: str = "development"
    debug: bool = False

    # 저장소 설정
    database_url: str = "sqlite+aiosqlite:///./zoho_mail.db"
    storage_backend: str = "database"

    # 암호화 설정
    encryption_key: str

    # 로깅 설정
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 릴레이 설정
    relay_host: str = "127.0.0.1"
    relay_port: int = 3847
    token_exchange_mode: str = "relay"

    # HTTP 설정
    http_timeout: float = 30.0
    revoke_timeout: float = 5.0

    # 토큰/메일 확인 설정
    token_refresh_skew_seconds: int = 300
    default_check_interval_minutes: int = 5
    default_region: str = "com"

    @field_validator("encryption_key")
    @classmethod
    def validate_encryption_key(cls, v):
        """암호화 키 검증"""
        if len(v) < 32:
            v = v.ljust(32, '0')
        elif len(v) > 32:
            v = v[:32]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """로그 레벨 검증"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"로그 레벨은 {valid_levels} 중 하나여야 합니다")
        return v.upper()

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v):
        if v.lower() not in STORAGE_BACKENDS:
            raise ValueError(f"저장소 백엔드는 {STORAGE_BACKENDS} 중 하나여야 합니다")
        return v.lower()

    @field_validator("token_exchange_mode")
    @classmethod
    def validate_token_exchange_mode(cls, v):
        if v.lower() not in TOKEN_EXCHANGE_MODES:
            raise ValueError(f"토큰 교환 경로는 {TOKEN_EXCHANGE_MODES} 중 하나여야 합니다")
        return v.lower()

    @field_validator("default_region")
    @classmethod
    def validate_default_region(cls, v):
        return v.lower()

    # ConfigPort 인터페이스 구현
    def get_environment(self) -> str:
        return self.environment

    def is_debug(self) -> bool:
        return self.debug

    def get_database_url(self) -> str:
        return self.database_url

    def get_storage_backend(self) -> str:
        return self.storage_backend

    def get_encryption_key(self) -> str:
        return self.encryption_key

    def get_log_level(self) -> str:
        return self.log_level

    def get_log_format(self) -> str:
        return self.log_format

    def get_relay_host(self) -> str:
        return self.relay_host

    def get_relay_port(self) -> int:
        return self.relay_port

    def get_relay_url(self) -> str:
        return f"http://{self.relay_host}:{self.relay_port}"

    def get_token_exchange_mode(self) -> str:
        return self.token_exchange_mode

    def get_http_timeout(self) -> float:
        return self.http_timeout

    def get_revoke_timeout(self) -> float:
        return self.revoke_timeout

    def get_token_refresh_skew_seconds(self) -> int:
        return self.token_refresh_skew_seconds

    def get_default_check_interval_minutes(self) -> int:
        return self.default_check_interval_minutes

    def get_default_region(self) -> str:
        return self.default_region

    def get_relay_config(self) -> dict:
        """릴레이 설정 조회"""
        return {
            "host": self.relay_host,
            "port": self.relay_port,
            "url": self.get_relay_url(),
            "token_exchange_mode": self.token_exchange_mode,
        }

    def get_log_config(self) -> dict:
        """로그 설정 조회"""
        return {
            "level": self.log_level,
            "format": self.log_format,
        }


class DevelopmentConfig(BaseConfig):
    """개발 환경 설정"""

    environment: str = "development"
    debug: bool = True
    log_level: str = "DEBUG"

    # 개발용 더미 값 (실제 사용 시 .env 파일에서 설정)
    encryption_key: str = "dev_encryption_key_32_bytes_long"


class ProductionConfig(BaseConfig):
    """운영 환경 설정"""

    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("encryption_key")
    @classmethod
    def validate_production_secrets(cls, v):
        """운영 환경에서는 실제 암호화 키가 필수"""
        if not v or v.startswith("dev_"):
            raise ValueError("운영 환경에서는 실제 암호화 키가 필요합니다")
        return v


class TestingConfig(BaseConfig):
    """테스트 환경 설정"""

    environment: str = "testing"
    debug: bool = True
    log_level: str = "WARNING"

    database_url: str = "sqlite+aiosqlite:///:memory:"
    storage_backend: str = "memory"
    encryption_key: str = "test_encryption_key_32_bytes_long"


class ConfigAdapter:
    """설정 어댑터 팩토리"""

    @staticmethod
    def create_config() -> ConfigPort:
        """환경에 따른 설정 객체를 생성합니다."""
        environment = os.getenv("ENVIRONMENT", "development").lower()

        if environment == "production":
            return ProductionConfig()
        elif environment == "testing":
            return TestingConfig()
        else:
            return DevelopmentConfig()


# 전역 설정 인스턴스
_config: Optional[ConfigPort] = None


def get_config() -> ConfigPort:
    """전역 설정 인스턴스를 반환합니다."""
    global _config
    if _config is None:
        _config = ConfigAdapter.create_config()
    return _config


def initialize_config() -> ConfigPort:
    """설정을 초기화합니다."""
    global _config
    _config = ConfigAdapter.create_config()
    return _config
