"""Test doubles for the token exchange, auth client, relay and notifier ports."""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

from core.domain.entities import Credentials, RelayRequest, RelayResponse, TokenResponse
from core.domain.ports import NotifierPort, RelayClientPort, TokenExchangePort, ZohoAuthClientPort


def token_ok(access_token: str = "new-token", expires_in: int = 3600) -> TokenResponse:
    return TokenResponse(
        status_code=200,
        payload={"access_token": access_token, "expires_in": expires_in, "token_type": "Bearer"},
    )


def json_response(status_code: int, payload: Any) -> RelayResponse:
    return RelayResponse(status_code=status_code, body=json.dumps(payload).encode("utf-8"))


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FakeTokenExchange(TokenExchangePort):
    """Returns queued responses; the last one repeats."""

    def __init__(self, *responses: TokenResponse, delay: float = 0.0):
        self.responses = list(responses) or [token_ok()]
        self.delay = delay
        self.calls: List[Credentials] = []

    async def exchange_refresh_token(self, credentials: Credentials) -> TokenResponse:
        self.calls.append(credentials)
        if self.delay:
            await asyncio.sleep(self.delay)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class FakeAuthClient(FakeTokenExchange, ZohoAuthClientPort):
    def __init__(self, *responses: TokenResponse, revoke_result: Any = True):
        super().__init__(*responses)
        self.revoke_result = revoke_result
        self.revoked: List[str] = []
        self.code_exchanges: List[Dict[str, Any]] = []

    def get_authorization_url(self, region, client_id, redirect_uri, scope, state=None) -> str:
        return f"https://auth.example/{region.value}?client_id={client_id}&redirect_uri={redirect_uri}"

    async def exchange_code_for_token(self, credentials, code, redirect_uri=None) -> TokenResponse:
        self.code_exchanges.append({"credentials": credentials, "code": code, "redirect_uri": redirect_uri})
        return await self.exchange_refresh_token(credentials)

    async def revoke_token(self, region, access_token: str) -> bool:
        self.revoked.append(access_token)
        if isinstance(self.revoke_result, Exception):
            raise self.revoke_result
        return self.revoke_result


class FakeRelay(RelayClientPort):
    """Routes each request to a handler and records it."""

    def __init__(self, handler: Callable[[RelayRequest], RelayResponse]):
        self.handler = handler
        self.requests: List[RelayRequest] = []

    async def forward(self, request: RelayRequest) -> RelayResponse:
        self.requests.append(request)
        await asyncio.sleep(0)
        return self.handler(request)

    def token_of(self, index: int) -> Optional[str]:
        header = self.requests[index].headers.get("Authorization", "")
        return header.split(" ", 1)[1] if " " in header else None

    def body_of(self, index: int) -> Dict[str, Any]:
        return json.loads(self.requests[index].body)


class RecordingNotifier(NotifierPort):
    def __init__(self):
        self.badges: List[str] = []
        self.notified: List[Dict[str, Any]] = []
        self.sounds = 0

    def update_badge(self, text: str) -> None:
        self.badges.append(text)

    def notify(self, message: Dict[str, Any]) -> None:
        self.notified.append(message)

    def play_sound(self) -> None:
        self.sounds += 1


def mailbox_handler(messages: List[Dict[str, Any]], folders: Optional[List[Dict[str, Any]]] = None):
    """A relay handler serving one account, its folders and a message list."""
    folders = folders if folders is not None else [
        {"folderId": "F-INBOX", "folderName": "Inbox", "path": "/Inbox"},
        {"folderId": "F-TRASH", "folderName": "Trash", "path": "/Trash"},
    ]

    def handler(request: RelayRequest) -> RelayResponse:
        path = request.path.split("?", 1)[0]
        if path == "/api/accounts":
            return json_response(200, {"data": [{"accountId": "A1", "emailAddress": "me@example.com"}]})
        if path == "/api/accounts/A1/folders":
            return json_response(200, {"data": folders})
        if path == "/api/accounts/A1/messages/view":
            return json_response(200, {"data": messages})
        if path == "/api/accounts/A1/updatemessage":
            return json_response(200, {"status": {"code": 200}})
        return json_response(404, {"error": "Not found"})

    return handler
