"""CLI tests: typer commands against an in-memory store and a mocked relay."""

import json

import httpx
import pytest
from typer.testing import CliRunner

from adapters import factory as factory_module
from adapters.external.memory_storage import InMemoryKeyValueStoreAdapter
from adapters.logger import create_logger
from config import adapters as config_adapters
from core.domain.entities import StorageScope
from main import app

from tests.fakes import RecordingNotifier

runner = CliRunner()


class RelayStub:
    """httpx handler standing in for the local relay."""

    def __init__(self, messages=None):
        self.requests = []
        self.messages = messages or []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/token":
            return httpx.Response(200, json={"access_token": "cli-token", "expires_in": 3600})
        if path == "/api/accounts":
            return httpx.Response(200, json={"data": [{"accountId": "A1", "emailAddress": "me@example.com"}]})
        if path == "/api/accounts/A1/folders":
            return httpx.Response(200, json={"data": [
                {"folderId": "F-INBOX", "folderName": "Inbox", "path": "/Inbox"},
                {"folderId": "F-TRASH", "folderName": "Trash", "path": "/Trash"},
            ]})
        if path == "/api/accounts/A1/messages/view":
            return httpx.Response(200, json={"data": self.messages})
        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def relay():
    return RelayStub(messages=[
        {"messageId": "m1", "subject": "Quarterly report", "fromAddress": "boss@example.com", "status": "0"},
    ])


@pytest.fixture
def storage():
    return InMemoryKeyValueStoreAdapter(create_logger("zohomail.test"))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def cli_factory(relay, storage, notifier):
    factory = factory_module.initialize_adapter_factory(
        config=config_adapters.TestingConfig(),
        transport=httpx.MockTransport(relay),
        storage=storage,
        notifier=notifier,
    )
    yield factory
    factory_module._factory = None


def set_credentials(*extra):
    return runner.invoke(app, [
        "credentials", "set",
        "--client-id", "cid",
        "--client-secret", "very-secret-value",
        "--refresh-token", "refresh-token-value",
        *extra,
    ])


class TestBasics:

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_credentials_set_and_show_masks_secrets(self, storage):
        assert set_credentials("--region", "eu").exit_code == 0

        result = runner.invoke(app, ["credentials", "show"])

        assert result.exit_code == 0
        assert "cid" in result.output
        assert "very-secret-value" not in result.output
        assert "very" in result.output
        assert storage.snapshot(StorageScope.LOCAL)["region"] == "eu"

    def test_credentials_set_requires_a_value(self):
        result = runner.invoke(app, ["credentials", "set"])

        assert result.exit_code == 1

    def test_credentials_clear(self, storage):
        set_credentials()

        result = runner.invoke(app, ["credentials", "clear", "--force"])

        assert result.exit_code == 0
        assert storage.snapshot(StorageScope.LOCAL) == {}


class TestPreferences:

    def test_set_and_show(self, storage):
        result = runner.invoke(app, ["prefs", "set", "--sound", "--check-interval", "10"])

        assert result.exit_code == 0
        sync = storage.snapshot(StorageScope.SYNC)
        assert sync["soundEnabled"] is True
        assert sync["checkInterval"] == 10

        shown = runner.invoke(app, ["prefs", "show"])
        assert "10" in shown.output

    def test_invalid_interval_is_rejected(self, storage):
        result = runner.invoke(app, ["prefs", "set", "--check-interval", "0"])

        assert result.exit_code == 1
        assert storage.snapshot(StorageScope.SYNC) == {}


class TestAuthAndMail:

    def test_login_without_credentials_fails(self, relay):
        result = runner.invoke(app, ["auth", "login"])

        assert result.exit_code == 1
        assert "오류" in result.output
        assert relay.requests == []

    def test_login_then_list(self, relay, storage):
        set_credentials()

        login = runner.invoke(app, ["auth", "login", "--region", "in"])

        assert login.exit_code == 0, login.output
        assert "me@example.com" in login.output
        token_request = relay.requests[0]
        assert token_request.url.path == "/token"
        assert json.loads(token_request.content)["region"] == "in"

        local = storage.snapshot(StorageScope.LOCAL)
        assert local["isLoggedIn"] is True
        assert local["inboxFolderId"] == "F-INBOX"

        listed = runner.invoke(app, ["mail", "list", "--status", "unread"])

        assert listed.exit_code == 0, listed.output
        assert "Quarterly report" in listed.output
        view = relay.requests[-1]
        assert view.url.params["folderId"] == "F-INBOX"
        assert view.headers["X-Zoho-Region"] == "in"

    def test_logout_keeps_credentials(self, storage):
        set_credentials()
        runner.invoke(app, ["auth", "login"])

        result = runner.invoke(app, ["auth", "logout"])

        assert result.exit_code == 0
        local = storage.snapshot(StorageScope.LOCAL)
        assert "accessToken" not in local
        assert local["zohoClientId"] == "cid"

    def test_watch_once_notifies(self, notifier):
        set_credentials()
        runner.invoke(app, ["auth", "login"])

        result = runner.invoke(app, ["watch", "--once"])

        assert result.exit_code == 0, result.output
        assert notifier.badges[-1] == "1"
        assert [m["messageId"] for m in notifier.notified] == ["m1"]


class TestAction:

    def test_unknown_action_exits_with_error(self):
        result = runner.invoke(app, ["action", '{"action": "launchRockets"}'])

        assert result.exit_code == 1
        assert "launchRockets" in result.output

    def test_invalid_json(self):
        result = runner.invoke(app, ["action", "not json"])

        assert result.exit_code == 1

    def test_update_badge(self, notifier):
        result = runner.invoke(app, ["action", '{"action": "updateBadge", "count": 3}'])

        assert result.exit_code == 0
        assert notifier.badges == ["3"]
