"""VK.com (VKontakte) OAuth 2.0 strategy.

Authenticates users by delegating to VK.com over OAuth 2.0. Applications
supply a verify callback that receives the tokens and a normalized profile
and calls ``done(err, user, info)``; ``user`` should be falsy when the
credentials are not acceptable.

Example::

    async def verify(access_token, refresh_token, profile, done):
        user = await users.find_or_create(vk_id=profile.id)
        done(None, user)

    strategy = VKontakteStrategy(
        {
            "client_id": "123456",
            "client_secret": "shhh-its-a-secret",
            "callback_url": "https://www.example.net/auth/vkontakte/callback",
            "scope": ["email"],
        },
        verify,
    )
"""
from __future__ import annotations

import enum
import inspect
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from vkontakte_auth.models.schemas import (
    PROVIDER_NAME,
    NormalizedProfile,
    ResolvedConfig,
    StrategyOptions,
)

from ..client import OAuth2Client
from ..exceptions import (
    InternalOAuthError,
    StrategyConfigurationError,
    VKontakteAuthorizationError,
    VKontakteTokenError,
)
from ..strategy import AuthenticationResult, OAuth2Strategy, RequestLike
from .profile import parse_profile, profile_request_url

logger = logging.getLogger(__name__)

DEFAULT_AUTHORIZATION_URL = "https://oauth.vk.com/authorize"
DEFAULT_TOKEN_URL = "https://oauth.vk.com/access_token"
DEFAULT_PROFILE_URL = "https://api.vk.com/method/users.get"
DEFAULT_SCOPE_SEPARATOR = ","
DEFAULT_LANG = "en"
DEFAULT_PHOTO_SIZE = 200
DEFAULT_API_VERSION = "5.110"

DISPLAY_MODES = ("page", "popup", "mobile")


def resolve_options(options: StrategyOptions | Mapping[str, Any] | None = None) -> ResolvedConfig:
    """Apply defaults to caller options. The request is always passed to the verify callback."""
    if options is None:
        options = StrategyOptions()
    elif not isinstance(options, StrategyOptions):
        options = StrategyOptions.model_validate(dict(options))

    scope = options.scope or ()
    if isinstance(scope, str):
        scope = (scope,)

    return ResolvedConfig(
        authorization_url=options.authorization_url or DEFAULT_AUTHORIZATION_URL,
        token_url=options.token_url or DEFAULT_TOKEN_URL,
        client_id=options.client_id,
        client_secret=options.client_secret,
        callback_url=options.callback_url,
        scope=tuple(scope),
        scope_separator=options.scope_separator or DEFAULT_SCOPE_SEPARATOR,
        lang=options.lang or DEFAULT_LANG,
        photo_size=options.photo_size or DEFAULT_PHOTO_SIZE,
        profile_fields=tuple(options.profile_fields or ()),
        api_version=options.api_version or DEFAULT_API_VERSION,
        profile_url=options.profile_url or DEFAULT_PROFILE_URL,
        pass_request_to_callback=True,
        state=options.state,
        skip_user_profile=options.skip_user_profile,
    )


class CallbackShape(enum.Enum):
    """Supported verify callback signatures, keyed by positional parameter count."""

    WITH_REQUEST = 6  # (request, access_token, refresh_token, params, profile, done)
    WITH_PARAMS = 5  # (access_token, refresh_token, params, profile, done)
    BASIC = 4  # (access_token, refresh_token, profile, done)


_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def resolve_callback_shape(verify: Callable[..., Any]) -> CallbackShape | None:
    """Map the callback's declared positional parameters to a shape, or ``None``."""
    try:
        signature = inspect.signature(verify)
    except (TypeError, ValueError):
        return None
    arity = sum(1 for p in signature.parameters.values() if p.kind in _POSITIONAL)
    try:
        return CallbackShape(arity)
    except ValueError:
        return None


class VerifyAdapter:
    """
    Bridge between the flow's fixed verify signature and the application's.

    VK does not expose the user's email through ``users.get``; when the app
    requests the ``email`` scope it comes back with the token instead. The
    adapter merges it into the profile before calling the application.
    """

    def __init__(self, verify: Callable[..., Any], shape: CallbackShape | None = None):
        self._verify = verify
        self.shape = shape if shape is not None else resolve_callback_shape(verify)

    def __call__(
        self,
        request: RequestLike,
        access_token: str,
        refresh_token: str | None,
        params: Mapping[str, Any] | None,
        profile: NormalizedProfile | None,
        done: Callable[..., None],
    ) -> Any:
        if params and params.get("email") and profile is not None:
            profile = profile.with_email(params["email"])

        if self.shape is CallbackShape.WITH_REQUEST:
            return self._verify(request, access_token, refresh_token, params, profile, done)
        if self.shape is CallbackShape.WITH_PARAMS:
            return self._verify(access_token, refresh_token, params, profile, done)
        if self.shape is CallbackShape.BASIC:
            return self._verify(access_token, refresh_token, profile, done)

        done(StrategyConfigurationError("VKontakteStrategy: verify callback must take 4, 5 or 6 parameters"))
        return None


class VKontakteStrategy:
    """VK.com authentication strategy."""

    name = PROVIDER_NAME

    def __init__(
        self,
        options: StrategyOptions | Mapping[str, Any] | None,
        verify: Callable[..., Any],
        *,
        shape: CallbackShape | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        """
        Initialize the strategy.

        Args:
            options: Strategy options; see ``StrategyOptions``
            verify: Application verify callback (4, 5 or 6 parameters)
            shape: Explicit callback shape, skipping signature inspection
            transport: Optional httpx transport (used by tests)
            timeout: Timeout in seconds for each outbound request

        Raises:
            TypeError: If ``verify`` is missing
            OAuthConfigurationError: If client credentials are missing
        """
        if verify is None:
            raise TypeError("VKontakteStrategy requires a verify callback")

        self.config = resolve_options(options)
        self._oauth2 = OAuth2Client(
            self.config.client_config(timeout),
            authorization_params=self.authorization_params,
            parse_error_response=self.parse_error_response,
            transport=transport,
        )
        self.verify = VerifyAdapter(verify, shape)
        if self.verify.shape is None:
            logger.warning("VKontakteStrategy: unsupported verify callback signature")

        self._flow = OAuth2Strategy(
            self.name,
            self._oauth2,
            self.verify,
            self.user_profile,
            callback_url=self.config.callback_url,
            scope=self.config.scope,
            state=self.config.state,
            skip_user_profile=self.config.skip_user_profile,
            pass_request_to_callback=self.config.pass_request_to_callback,
            authorization_error=lambda message, code, uri: VKontakteAuthorizationError(message, code),
        )

    @property
    def lang(self) -> str | None:
        return self.config.lang

    @property
    def photo_size(self) -> int:
        return self.config.photo_size

    async def authenticate(self, request: RequestLike, **options: Any) -> AuthenticationResult:
        return await self._flow.authenticate(request, **options)

    def authorization_params(self, options: Mapping[str, Any]) -> dict[str, Any]:
        """
        Extra parameters for the authorization request.

        ``display`` selects how VK renders the dialog: ``page``, ``popup`` or
        ``mobile``.
        """
        params: dict[str, Any] = {}
        if options.get("display"):
            params["display"] = options["display"]
        return params

    @property
    def profile_url(self) -> str:
        return profile_request_url(self.config)

    async def user_profile(self, access_token: str) -> NormalizedProfile:
        """
        Retrieve and normalize the user's VK profile.

        Raises:
            InternalOAuthError: The request could not be completed
            VKontakteAPIError: VK answered with an error object
            ProfileParseError: The response could not be parsed
        """
        try:
            body, _ = await self._oauth2.get_protected_resource(self.profile_url, access_token)
        except httpx.HTTPError as e:
            logger.error(f"User profile fetch failed: {str(e)}")
            raise InternalOAuthError("failed to fetch user profile", e) from e

        profile = parse_profile(body, self.photo_size)
        logger.info(f"Fetched VK profile for user {profile.id}")
        return profile

    def parse_error_response(self, body: str, status: int) -> Exception | None:
        """Translate a token endpoint error body; VK error objects become ``VKontakteTokenError``."""
        payload = json.loads(body)
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            return VKontakteTokenError(error.get("error_msg") or "Unknown VK token error", error.get("error_code"))
        return OAuth2Client.default_parse_error_response(body, status)
