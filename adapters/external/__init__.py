"""
외부 서비스 어댑터 패키지

외부 API, 서비스와의 통신을 담당하는 어댑터들을 포함합니다.
"""

from .encryption_service import EncryptionServiceAdapter
from .memory_storage import InMemoryKeyValueStoreAdapter
from .relay_client import RelayClientAdapter
from .zoho_auth_client import ZohoAuthClientAdapter

__all__ = [
    "EncryptionServiceAdapter",
    "InMemoryKeyValueStoreAdapter",
    "RelayClientAdapter",
    "ZohoAuthClientAdapter",
]
