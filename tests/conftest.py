from __future__ import annotations

import json
import os
from types import SimpleNamespace
from typing import Any

os.environ["APP_ENV"] = "test"

import httpx  # noqa: E402
import pytest  # noqa: E402

from vkontakte_auth.services.oauth import VKontakteStrategy  # noqa: E402

VK_USER: dict[str, Any] = {
    "id": 1,
    "first_name": "Pavel",
    "last_name": "Durov",
    "screen_name": "durov",
    "sex": 2,
    "photo_200": "https://sun1.userapi.com/durov_200.jpg",
}

STRATEGY_OPTIONS: dict[str, Any] = {
    "client_id": "123456",
    "client_secret": "shhh-its-a-secret",
    "callback_url": "https://www.example.net/auth/vkontakte/callback",
}


class FakeVK:
    """In-memory stand-in for oauth.vk.com and api.vk.com.

    ``token`` and ``profile`` are ``(status, payload)`` pairs; a ``str``
    payload is sent verbatim, anything else as JSON. Set ``fail_with`` to an
    ``httpx.RequestError`` to simulate a transport failure.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.token: tuple[int, Any] = (200, {"access_token": "vk-access-token", "expires_in": 0, "user_id": 1})
        self.profile: tuple[int, Any] = (200, {"response": [dict(VK_USER)]})
        self.fail_with: Exception | None = None

    @staticmethod
    def _respond(status: int, payload: Any) -> httpx.Response:
        if isinstance(payload, str):
            return httpx.Response(status, text=payload)
        return httpx.Response(status, content=json.dumps(payload).encode(), headers={"content-type": "application/json"})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if request.url.path == "/access_token":
            return self._respond(*self.token)
        if request.url.path == "/method/users.get":
            return self._respond(*self.profile)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_request(**query: str) -> SimpleNamespace:
    """Minimal request object: the flow only reads ``query_params``."""
    return SimpleNamespace(query_params=query)


@pytest.fixture
def vk():
    return FakeVK()


@pytest.fixture
def make_strategy(vk):
    def factory(verify=None, **options: Any) -> VKontakteStrategy:
        if verify is None:
            def verify(access_token, refresh_token, profile, done):
                done(None, profile)
        return VKontakteStrategy({**STRATEGY_OPTIONS, **options}, verify, transport=vk.transport)

    return factory
