"""
리전 엔드포인트 매핑

리전 코드를 Zoho의 인증/토큰/폐기 엔드포인트와 메일 API 호스트로 변환합니다.
순수 함수만 포함하며, 알 수 없는 리전은 기본 리전으로 대체됩니다.
"""

from typing import Dict, Optional, Union

from .entities import AuthEndpoints, Region

DEFAULT_REGION = Region.COM

AUTH_HOSTS: Dict[Region, str] = {
    Region.COM: "accounts.zoho.com",
    Region.IN: "accounts.zoho.in",
    Region.EU: "accounts.zoho.eu",
    Region.AU: "accounts.zoho.com.au",
}

API_HOSTS: Dict[Region, str] = {
    Region.COM: "mail.zoho.com",
    Region.IN: "mail.zoho.in",
    Region.EU: "mail.zoho.eu",
    Region.AU: "mail.zoho.com.au",
}

AUTHORIZE_PATH = "/oauth/v2/auth"
TOKEN_PATH = "/oauth/v2/token"
REVOKE_PATH = "/oauth/v2/token/revoke"


def normalize_region(region: Union[Region, str, None]) -> Region:
    """리전 코드를 정규화합니다. 알 수 없는 값은 기본 리전이 됩니다."""
    if isinstance(region, Region):
        return region
    if region:
        try:
            return Region(str(region).strip().lower())
        except ValueError:
            pass
    return DEFAULT_REGION


def resolve(region: Union[Region, str, None]) -> AuthEndpoints:
    """리전의 OAuth 엔드포인트를 반환합니다."""
    host = AUTH_HOSTS[normalize_region(region)]
    return AuthEndpoints(
        authorize=f"https://{host}{AUTHORIZE_PATH}",
        token=f"https://{host}{TOKEN_PATH}",
        revoke=f"https://{host}{REVOKE_PATH}",
    )


def resolve_auth_host(region: Union[Region, str, None]) -> str:
    return AUTH_HOSTS[normalize_region(region)]


def resolve_api_host(region: Union[Region, str, None]) -> str:
    """리전의 메일 API 호스트 이름을 반환합니다."""
    return API_HOSTS[normalize_region(region)]


def region_value(region: Optional[Region]) -> str:
    return normalize_region(region).value
