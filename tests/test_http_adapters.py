"""Tests for the Zoho auth client and relay client adapters over httpx.MockTransport."""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from adapters.external.relay_client import RelayClientAdapter
from adapters.external.zoho_auth_client import ZohoAuthClientAdapter
from core.domain.entities import Credentials, Region, RelayRequest
from core.domain.errors import ApiError, RelayUnavailable


def refusing_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def region_credentials():
    return Credentials(client_id="cid", client_secret="secret", refresh_token="rt", region=Region.IN)


class TestZohoAuthClient:
    """Direct calls to the regional accounts server."""

    @pytest.mark.asyncio
    async def test_refresh_exchange_posts_form_to_regional_host(self, logger, region_credentials):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"access_token": "at", "expires_in": 3600})

        client = ZohoAuthClientAdapter(logger, transport=httpx.MockTransport(handler))

        response = await client.exchange_refresh_token(region_credentials)

        assert response.is_success()
        assert response.access_token == "at"
        assert str(seen[0].url) == "https://accounts.zoho.in/oauth/v2/token"
        form = parse_qs(seen[0].content.decode())
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["rt"]
        assert form["client_id"] == ["cid"]

    @pytest.mark.asyncio
    async def test_error_payload_is_returned_not_raised(self, logger, region_credentials):
        transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "invalid_code"}))
        client = ZohoAuthClientAdapter(logger, transport=transport)

        response = await client.exchange_refresh_token(region_credentials)

        assert response.status_code == 400
        assert response.error == "invalid_code"
        assert not response.is_success()

    @pytest.mark.asyncio
    async def test_non_json_body(self, logger, region_credentials):
        transport = httpx.MockTransport(lambda request: httpx.Response(502, text="Bad gateway"))
        client = ZohoAuthClientAdapter(logger, transport=transport)

        response = await client.exchange_refresh_token(region_credentials)

        assert response.error == "Bad gateway"

    @pytest.mark.asyncio
    async def test_network_failure_raises_api_error(self, logger, region_credentials):
        client = ZohoAuthClientAdapter(logger, transport=httpx.MockTransport(refusing_handler))

        with pytest.raises(ApiError):
            await client.exchange_refresh_token(region_credentials)

    @pytest.mark.asyncio
    async def test_code_exchange(self, logger, region_credentials):
        seen = []

        def handler(request):
            seen.append(parse_qs(request.content.decode()))
            return httpx.Response(200, json={"access_token": "at", "refresh_token": "new-rt"})

        client = ZohoAuthClientAdapter(logger, transport=httpx.MockTransport(handler))

        await client.exchange_code_for_token(region_credentials, "the-code", "http://localhost/cb")

        assert seen[0]["grant_type"] == ["authorization_code"]
        assert seen[0]["code"] == ["the-code"]
        assert seen[0]["redirect_uri"] == ["http://localhost/cb"]

    def test_authorization_url(self, logger):
        client = ZohoAuthClientAdapter(logger)

        url = client.get_authorization_url(Region.EU, "cid", "http://localhost/cb", "ZohoMail.messages.ALL", "xyz")

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert parsed.netloc == "accounts.zoho.eu"
        assert parsed.path == "/oauth/v2/auth"
        assert query["response_type"] == ["code"]
        assert query["access_type"] == ["offline"]
        assert query["state"] == ["xyz"]

    @pytest.mark.asyncio
    async def test_revoke(self, logger):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"status": "success"})

        client = ZohoAuthClientAdapter(logger, transport=httpx.MockTransport(handler))

        assert await client.revoke_token(Region.AU, "tok") is True
        assert seen[0].url.host == "accounts.zoho.com.au"
        assert seen[0].url.params["token"] == "tok"

    @pytest.mark.asyncio
    async def test_revoke_failure_returns_false(self, logger):
        client = ZohoAuthClientAdapter(logger, transport=httpx.MockTransport(refusing_handler))

        assert await client.revoke_token(Region.COM, "tok") is False


class TestRelayClient:
    """Calls to the local relay."""

    @pytest.mark.asyncio
    async def test_forward_passes_request_through(self, logger):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(404, json={"data": {"errorMessage": "No such message"}})

        client = RelayClientAdapter("http://127.0.0.1:3847/", logger, transport=httpx.MockTransport(handler))

        response = await client.forward(RelayRequest(
            method="PUT",
            path="/api/accounts/A1/updatemessage",
            headers={"Authorization": "Zoho-oauthtoken t", "X-Zoho-Region": "eu"},
            body=b'{"mode": "archive"}',
        ))

        assert response.status_code == 404
        assert json.loads(response.body)["data"]["errorMessage"] == "No such message"
        assert str(seen[0].url) == "http://127.0.0.1:3847/api/accounts/A1/updatemessage"
        assert seen[0].headers["X-Zoho-Region"] == "eu"
        assert seen[0].content == b'{"mode": "archive"}'

    @pytest.mark.asyncio
    async def test_forward_when_relay_is_down(self, logger):
        client = RelayClientAdapter("http://127.0.0.1:3847", logger, transport=httpx.MockTransport(refusing_handler))

        with pytest.raises(RelayUnavailable):
            await client.forward(RelayRequest(path="/api/accounts"))

    @pytest.mark.asyncio
    async def test_token_exchange_through_relay(self, logger):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"access_token": "relayed", "expires_in": 3600})

        client = RelayClientAdapter("http://127.0.0.1:3847", logger, transport=httpx.MockTransport(handler))

        response = await client.exchange_refresh_token(
            Credentials(client_id="cid", client_secret="s", refresh_token="rt")
        )

        assert response.access_token == "relayed"
        assert seen[0].url.path == "/token"
        assert json.loads(seen[0].content) == {
            "refresh_token": "rt", "client_id": "cid", "client_secret": "s", "region": "com",
        }

    @pytest.mark.asyncio
    async def test_token_exchange_when_relay_is_down(self, logger):
        client = RelayClientAdapter("http://127.0.0.1:3847", logger, transport=httpx.MockTransport(refusing_handler))

        with pytest.raises(RelayUnavailable):
            await client.exchange_refresh_token(Credentials(client_id="c", client_secret="s", refresh_token="r"))
