"""Authorization code flow on top of ``OAuth2Client``.

``authenticate`` never raises for flow failures. Every outcome, including
errors, comes back as an ``AuthenticationResult``.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import secrets
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from .client import OAuth2Client
from .exceptions import OAuthAuthorizationError, OAuthProviderError, OAuthTokenError

logger = logging.getLogger(__name__)

ResultKind = Literal["success", "fail", "error", "redirect"]
ProfileLoader = Callable[[str], Awaitable[Any]]
AuthorizationErrorFactory = Callable[[str, str, str | None], Exception]


class RequestLike(Protocol):
    """Anything exposing the callback's query string, e.g. ``starlette.requests.Request``."""

    @property
    def query_params(self) -> Any: ...


@dataclass(frozen=True)
class AuthenticationResult:
    kind: ResultKind
    user: Any = None
    info: Any = None
    error: BaseException | None = None
    location: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind == "success"

    @classmethod
    def success(cls, user: Any, info: Any = None) -> AuthenticationResult:
        return cls(kind="success", user=user, info=info)

    @classmethod
    def fail(cls, info: Any = None) -> AuthenticationResult:
        return cls(kind="fail", info=info)

    @classmethod
    def failure(cls, error: BaseException) -> AuthenticationResult:
        return cls(kind="error", error=error)

    @classmethod
    def redirect(cls, location: str, info: Any = None) -> AuthenticationResult:
        return cls(kind="redirect", location=location, info=info)


def _default_authorization_error(description: str, code: str, uri: str | None) -> Exception:
    return OAuthAuthorizationError(description, code, uri)


class OAuth2Strategy:
    """
    Drives one authentication attempt per ``authenticate`` call.

    The verify function is called as
    ``verify(request, access_token, refresh_token, params, profile, done)``
    when ``pass_request_to_callback`` is set, and without ``request``
    otherwise. It reports its outcome with ``done(err, user, info)`` and may
    be a coroutine function.
    """

    def __init__(
        self,
        name: str,
        client: OAuth2Client,
        verify: Callable[..., Any],
        user_profile: ProfileLoader,
        *,
        callback_url: str | None = None,
        scope: Iterable[str] = (),
        state: bool = False,
        skip_user_profile: bool = False,
        pass_request_to_callback: bool = False,
        authorization_error: AuthorizationErrorFactory | None = None,
    ):
        self.name = name
        self.client = client
        self._verify = verify
        self._user_profile = user_profile
        self.callback_url = callback_url
        self.scope = tuple(scope)
        self.state = state
        self.skip_user_profile = skip_user_profile
        self.pass_request_to_callback = pass_request_to_callback
        self._authorization_error = authorization_error or _default_authorization_error

    async def authenticate(self, request: RequestLike, **options: Any) -> AuthenticationResult:
        """
        Run the redirect leg or the callback leg, depending on the request.

        Args:
            request: Incoming request; only ``query_params`` is read
            **options: ``callback_url``, ``scope``, ``state`` and provider
                specific authorization options (e.g. ``display``)

        Returns:
            AuthenticationResult describing the outcome
        """
        query = request.query_params

        if query.get("error"):
            if query.get("error") == "access_denied":
                logger.info(f"{self.name}: user denied authorization")
                return AuthenticationResult.fail({"message": query.get("error_description")})
            return AuthenticationResult.failure(
                self._authorization_error(
                    query.get("error_description") or query.get("error"),
                    query.get("error"),
                    query.get("error_uri"),
                )
            )

        callback_url = options.pop("callback_url", None) or self.callback_url
        code = query.get("code")
        if code:
            return await self._complete(request, code, callback_url)

        scope = options.pop("scope", None)
        state = options.pop("state", None)
        info = None
        if state is None and self.state:
            state = secrets.token_urlsafe(24)
        if state:
            info = {"state": state}

        location = self.client.get_authorize_url(
            callback_url,
            self.scope if scope is None else scope,
            state,
            **options,
        )
        logger.info(f"{self.name}: redirecting to authorization endpoint")
        return AuthenticationResult.redirect(location, info)

    async def _complete(self, request: RequestLike, code: str, callback_url: str | None) -> AuthenticationResult:
        try:
            params = await self.client.fetch_token(code, callback_url)
        except OAuthProviderError as e:
            return AuthenticationResult.failure(e)

        access_token = params.get("access_token")
        if not access_token:
            return AuthenticationResult.failure(OAuthTokenError("No access token in response"))
        refresh_token = params.get("refresh_token")

        profile = None
        if not self.skip_user_profile:
            try:
                profile = await self._user_profile(access_token)
            except OAuthProviderError as e:
                return AuthenticationResult.failure(e)

        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[tuple[Any, Any, Any]] = loop.create_future()

        def done(err: BaseException | None = None, user: Any = None, info: Any = None) -> None:
            if outcome.done():
                logger.warning(f"{self.name}: verify callback completed more than once")
                return
            outcome.set_result((err, user, info))

        args: tuple[Any, ...] = (access_token, refresh_token, params, profile, done)
        if self.pass_request_to_callback:
            args = (request, *args)

        try:
            pending = self._verify(*args)
            if inspect.isawaitable(pending):
                await pending
        except Exception as e:  # noqa: BLE001 - reported through the result
            logger.exception(f"{self.name}: verify callback raised")
            return AuthenticationResult.failure(e)

        err, user, info = await outcome
        if err is not None:
            return AuthenticationResult.failure(err)
        if not user:
            return AuthenticationResult.fail(info)
        return AuthenticationResult.success(user, info)
