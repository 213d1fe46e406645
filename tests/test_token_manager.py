"""Tests for TokenManagerUseCase."""

import asyncio

import pytest

from core.domain.entities import Credentials, Region, StorageScope, TokenResponse, TokenState
from core.domain.errors import ApiError, CredentialsMissing, SessionExpired
from core.domain.session import AuthSession

from tests.fakes import FakeAuthClient, FakeTokenExchange, token_ok


class TestGetValidAccessToken:
    """Cached token reuse and refresh near expiry."""

    @pytest.mark.asyncio
    async def test_fresh_cached_token_makes_no_network_call(self, make_token_manager, credentials, clock, exchange):
        session = AuthSession(
            credentials=credentials,
            token=TokenState(access_token="cached", expires_at_ms=clock() + 3600_000, logged_in=True),
        )
        manager = make_token_manager(session)

        assert await manager.get_valid_access_token() == "cached"
        assert exchange.calls == []

    @pytest.mark.asyncio
    async def test_token_inside_skew_window_is_refreshed_once(self, make_token_manager, credentials, clock, exchange):
        session = AuthSession(
            credentials=credentials,
            token=TokenState(access_token="stale", expires_at_ms=clock() + 299_000, logged_in=True),
        )
        manager = make_token_manager(session)

        token = await manager.get_valid_access_token()

        assert token == "new-token"
        assert len(exchange.calls) == 1
        assert session.token.expires_at_ms == clock() + 3600 * 1000
        assert session.token.logged_in is True

    @pytest.mark.asyncio
    async def test_missing_expiry_counts_as_stale(self, make_token_manager, credentials, exchange):
        session = AuthSession(credentials=credentials, token=TokenState(access_token="x", logged_in=True))
        manager = make_token_manager(session)

        await manager.get_valid_access_token()

        assert len(exchange.calls) == 1

    @pytest.mark.asyncio
    async def test_expiry_uses_default_lifetime_when_missing(self, make_token_manager, session, clock):
        exchange = FakeTokenExchange(TokenResponse(status_code=200, payload={"access_token": "t"}))
        manager = make_token_manager(session, exchange)

        await manager.get_valid_access_token()

        assert session.token.expires_at_ms == clock() + 3600 * 1000

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_exchange(self, make_token_manager, session):
        exchange = FakeTokenExchange(token_ok("shared"), delay=0.05)
        manager = make_token_manager(session, exchange)

        tokens = await asyncio.gather(*[manager.get_valid_access_token() for _ in range(5)])

        assert tokens == ["shared"] * 5
        assert len(exchange.calls) == 1
        assert session.exchange_count == 1

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_before_network(self, make_token_manager, exchange):
        session = AuthSession(credentials=Credentials(client_id="id", refresh_token="rt"))
        manager = make_token_manager(session)

        with pytest.raises(CredentialsMissing):
            await manager.get_valid_access_token()
        assert exchange.calls == []

    @pytest.mark.asyncio
    async def test_refreshed_token_is_persisted_encrypted(self, make_token_manager, session, storage):
        manager = make_token_manager(session)

        await manager.get_valid_access_token()

        stored = storage.snapshot(StorageScope.LOCAL)
        assert stored["accessToken"] != "new-token"
        assert stored["isLoggedIn"] is True
        assert stored["tokenExpiry"] == session.token.expires_at_ms


class TestRefreshFailures:
    """Token endpoint rejections."""

    @pytest.mark.asyncio
    async def test_rejected_refresh_token_expires_session(self, make_token_manager, logged_in_session, store):
        exchange = FakeTokenExchange(TokenResponse(status_code=400, payload={"error": "invalid_code"}))
        manager = make_token_manager(logged_in_session, exchange)

        with pytest.raises(SessionExpired):
            await manager.refresh()

        assert logged_in_session.token.access_token is None
        assert logged_in_session.is_logged_in() is False
        assert (await store.load_token_state()).logged_in is False

    @pytest.mark.asyncio
    async def test_success_status_without_access_token_expires_session(self, make_token_manager, session):
        exchange = FakeTokenExchange(TokenResponse(status_code=200, payload={"error": "invalid_client"}))
        manager = make_token_manager(session, exchange)

        with pytest.raises(SessionExpired):
            await manager.refresh()

    @pytest.mark.asyncio
    async def test_server_error_keeps_token_state(self, make_token_manager, logged_in_session):
        exchange = FakeTokenExchange(TokenResponse(status_code=500, payload={"error": "connect ECONNREFUSED"}))
        manager = make_token_manager(logged_in_session, exchange)

        with pytest.raises(ApiError) as exc_info:
            await manager.refresh()

        assert exc_info.value.status_code == 500
        assert logged_in_session.token.access_token == "old-token"

    @pytest.mark.asyncio
    async def test_rejected_token_is_not_exchanged_again_until_login(self, make_token_manager, session):
        exchange = FakeTokenExchange(
            TokenResponse(status_code=400, payload={"error": "invalid_code"}),
            token_ok("second"),
        )
        manager = make_token_manager(session, exchange)

        with pytest.raises(SessionExpired):
            await manager.refresh()
        with pytest.raises(SessionExpired):
            await manager.get_valid_access_token()
        assert len(exchange.calls) == 1
        assert session.refresh_task is None

        await manager.login()

        assert session.token.access_token == "second"
        assert len(exchange.calls) == 2

    @pytest.mark.asyncio
    async def test_server_error_does_not_block_next_refresh(self, make_token_manager, session):
        exchange = FakeTokenExchange(
            TokenResponse(status_code=503, payload={"error": "upstream down"}),
            token_ok("second"),
        )
        manager = make_token_manager(session, exchange)

        with pytest.raises(ApiError):
            await manager.refresh()
        assert await manager.refresh() == "second"


class TestLoginLogout:
    """Login, logout and the authorization code flow."""

    @pytest.mark.asyncio
    async def test_login_with_region_stores_region(self, make_token_manager, store, storage):
        await store.save_credentials(Credentials(client_id="c", client_secret="s", refresh_token="r"))
        session = AuthSession(credentials=await store.load_credentials())
        exchange = FakeTokenExchange(token_ok("india-token"))
        manager = make_token_manager(session, exchange)

        token = await manager.login(Region.IN)

        assert token.access_token == "india-token"
        assert exchange.calls[0].region is Region.IN
        assert storage.snapshot(StorageScope.LOCAL)["region"] == "in"
        assert session.is_logged_in()

    @pytest.mark.asyncio
    async def test_login_keeps_existing_region(self, make_token_manager, exchange):
        session = AuthSession(credentials=Credentials(
            client_id="c", client_secret="s", refresh_token="r", region=Region.EU,
        ))
        manager = make_token_manager(session)

        await manager.login(Region.IN)

        assert exchange.calls[0].region is Region.EU

    @pytest.mark.asyncio
    async def test_exchange_uses_session_default_region(self, make_token_manager, exchange, credentials):
        session = AuthSession(credentials=credentials, default_region=Region.AU)
        manager = make_token_manager(session)

        await manager.refresh()

        assert exchange.calls[0].region is Region.AU
        assert session.credentials.region is None

    @pytest.mark.asyncio
    async def test_login_without_credentials_makes_no_call(self, make_token_manager, exchange):
        manager = make_token_manager(AuthSession())

        with pytest.raises(CredentialsMissing):
            await manager.login(Region.IN)
        assert exchange.calls == []

    @pytest.mark.asyncio
    async def test_logout_clears_session_even_when_revoke_fails(
        self, make_token_manager, logged_in_session, store, storage
    ):
        await store.save_credentials(logged_in_session.credentials)
        await store.save_token_state(logged_in_session.token)
        await storage.set(StorageScope.LOCAL, {"accountId": "A1", "lastEmailIds": ["m1"], "refreshToken": "legacy"})
        client = FakeAuthClient(revoke_result=ApiError("network down"))
        manager = make_token_manager(logged_in_session, client=client)

        await manager.logout()
        await manager.drain_background_tasks()

        local = storage.snapshot(StorageScope.LOCAL)
        for key in ("accessToken", "tokenExpiry", "isLoggedIn", "accountId", "lastEmailIds", "refreshToken"):
            assert key not in local
        assert "zohoClientId" in local
        assert "zohoRefreshToken" in local
        assert client.revoked == ["old-token"]
        assert manager.is_logged_in() is False

    @pytest.mark.asyncio
    async def test_logout_does_not_wait_for_slow_revoke(self, make_token_manager, logged_in_session):
        class SlowClient(FakeAuthClient):
            async def revoke_token(self, region, access_token):
                await asyncio.sleep(10)
                return True

        manager = make_token_manager(logged_in_session, client=SlowClient())

        await asyncio.wait_for(manager.logout(), timeout=1)
        await asyncio.wait_for(manager.drain_background_tasks(), timeout=2)

        assert logged_in_session.token.access_token is None

    @pytest.mark.asyncio
    async def test_refresh_finishing_after_logout_is_discarded(self, make_token_manager, session, storage):
        exchange = FakeTokenExchange(token_ok("late-token"), delay=0.05)
        manager = make_token_manager(session, exchange)

        pending = asyncio.ensure_future(manager.refresh())
        await asyncio.sleep(0.01)
        await manager.logout()

        with pytest.raises(SessionExpired):
            await pending

        assert manager.is_logged_in() is False
        assert session.token.access_token is None
        local = storage.snapshot(StorageScope.LOCAL)
        for key in ("accessToken", "tokenExpiry"):
            assert key not in local
        assert local.get("isLoggedIn") is not True

    @pytest.mark.asyncio
    async def test_login_after_logout_during_refresh_starts_fresh_exchange(self, make_token_manager, session):
        exchange = FakeTokenExchange(token_ok("late-token"), delay=0.05)
        manager = make_token_manager(session, exchange)

        pending = asyncio.ensure_future(manager.refresh())
        await asyncio.sleep(0.01)
        await manager.logout()
        await manager.login()

        assert session.token.access_token == "late-token"
        assert len(exchange.calls) == 2
        with pytest.raises(SessionExpired):
            await pending
        assert manager.is_logged_in() is True

    def test_authorization_url_requires_client_id(self, make_token_manager):
        manager = make_token_manager(AuthSession())

        with pytest.raises(CredentialsMissing):
            manager.get_authorization_url("http://localhost/callback")

    @pytest.mark.asyncio
    async def test_exchange_code_stores_refresh_token(self, make_token_manager, store):
        session = AuthSession(credentials=Credentials(client_id="c", client_secret="s"))
        client = FakeAuthClient(TokenResponse(status_code=200, payload={
            "access_token": "from-code", "refresh_token": "issued-refresh", "expires_in": 3600,
        }))
        manager = make_token_manager(session, client=client)

        token = await manager.exchange_code("code-123", "http://localhost/callback")

        assert token.access_token == "from-code"
        assert client.code_exchanges[0]["code"] == "code-123"
        assert (await store.load_credentials()).refresh_token == "issued-refresh"

    @pytest.mark.asyncio
    async def test_exchange_code_rejection_raises_api_error(self, make_token_manager):
        session = AuthSession(credentials=Credentials(client_id="c", client_secret="s"))
        client = FakeAuthClient(TokenResponse(status_code=400, payload={"error": "invalid_code"}))
        manager = make_token_manager(session, client=client)

        with pytest.raises(ApiError, match="invalid_code"):
            await manager.exchange_code("bad")
