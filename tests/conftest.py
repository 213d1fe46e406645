"""Shared fixtures: in-memory storage, credential store and a logged-in session."""

import pytest

from adapters.external.encryption_service import EncryptionServiceAdapter
from adapters.external.memory_storage import InMemoryKeyValueStoreAdapter
from adapters.logger import create_logger
from core.domain.entities import Credentials, DiscoveryCache, TokenState
from core.domain.session import AuthSession
from core.usecases.credential_store import CredentialStore
from core.usecases.mail_api import MailApiUseCase
from core.usecases.token_manager import TokenManagerUseCase

from tests.fakes import FakeAuthClient, FakeClock, FakeTokenExchange

TEST_ENCRYPTION_KEY = "test_encryption_key_32_bytes_lon"


@pytest.fixture
def logger():
    return create_logger("zohomail.test", "DEBUG")


@pytest.fixture(scope="session")
def encryption():
    return EncryptionServiceAdapter(TEST_ENCRYPTION_KEY, create_logger("zohomail.test"))


@pytest.fixture
def storage(logger):
    return InMemoryKeyValueStoreAdapter(logger)


@pytest.fixture
def store(storage, encryption, logger):
    return CredentialStore(storage, encryption, logger)


@pytest.fixture
def credentials():
    return Credentials(client_id="client-id", client_secret="client-secret", refresh_token="refresh-token")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(credentials):
    return AuthSession(credentials=credentials)


@pytest.fixture
def logged_in_session(credentials, clock):
    return AuthSession(
        credentials=credentials,
        token=TokenState(access_token="old-token", expires_at_ms=clock() + 3600_000, logged_in=True),
    )


@pytest.fixture
def exchange():
    return FakeTokenExchange()


@pytest.fixture
def auth_client():
    return FakeAuthClient()


@pytest.fixture
def make_token_manager(store, exchange, auth_client, logger, clock):
    def _make(session, token_exchange=None, client=None):
        return TokenManagerUseCase(
            session=session,
            credential_store=store,
            token_exchange=token_exchange or exchange,
            auth_client=client or auth_client,
            logger=logger,
            revoke_timeout=0.2,
            clock=clock,
        )

    return _make


@pytest.fixture
def make_mail_api(store, logger, make_token_manager):
    def _make(session, relay, token_exchange=None):
        token_manager = make_token_manager(session, token_exchange)
        return MailApiUseCase(
            session=session,
            token_manager=token_manager,
            relay_client=relay,
            credential_store=store,
            logger=logger,
        )

    return _make


@pytest.fixture
def discovered_session(logged_in_session):
    logged_in_session.discovery = DiscoveryCache(
        account_id="A1", inbox_folder_id="F-INBOX", user_email="me@example.com"
    )
    return logged_in_session
