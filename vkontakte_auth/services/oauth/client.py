"""Generic OAuth 2.0 client for the authorization code grant.

Knows nothing about any particular provider. Providers customize it through
two hooks passed at construction:

- ``authorization_params(options)``: extra query parameters for the
  authorization request
- ``parse_error_response(body, status)``: turn an error body from the token
  endpoint into an exception (or ``None`` to fall back to a generic error)
"""
from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

import httpx

from vkontakte_auth.models.schemas import OAuth2ClientConfig

from .exceptions import InternalOAuthError, OAuthConfigurationError, OAuthTokenError

logger = logging.getLogger(__name__)

AuthorizationParamsHook = Callable[[Mapping[str, Any]], dict[str, Any]]
ErrorResponseHook = Callable[[str, int], Exception | None]


def _append_query(url: str, params: Mapping[str, Any], safe: str = "") -> str:
    if not params:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params, safe=safe)}"


class OAuth2Client:
    """
    OAuth 2.0 client: authorization URL, code exchange, protected resources.

    One ``httpx.AsyncClient`` is opened per outbound request. No retries.
    """

    def __init__(
        self,
        config: OAuth2ClientConfig,
        *,
        authorization_params: AuthorizationParamsHook | None = None,
        parse_error_response: ErrorResponseHook | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize OAuth client.

        Args:
            config: Endpoints, credentials and scope settings
            authorization_params: Provider hook for authorization request params
            parse_error_response: Provider hook for token endpoint error bodies
            transport: Optional httpx transport (used by tests)

        Raises:
            OAuthConfigurationError: If client credentials are missing
        """
        if not config.client_id:
            raise OAuthConfigurationError("OAuth2Client requires a client_id")
        if not config.client_secret:
            raise OAuthConfigurationError("OAuth2Client requires a client_secret")

        self.config = config
        self._authorization_params = authorization_params or (lambda options: {})
        self._parse_error_response = parse_error_response or self.default_parse_error_response
        self._transport = transport

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.config.timeout)

    def get_authorize_url(
        self,
        redirect_uri: str | None = None,
        scope: Iterable[str] | str | None = None,
        state: str | None = None,
        **options: Any,
    ) -> str:
        """
        Generate authorization URL for OAuth flow.

        Args:
            redirect_uri: Callback URL, defaults to the configured one
            scope: Requested scopes, defaults to the configured ones
            state: CSRF protection token
            **options: Per-request options handed to the provider hook

        Returns:
            Full authorization URL with query parameters
        """
        params: dict[str, Any] = {
            "response_type": "code",
            "client_id": self.config.client_id,
        }
        redirect_uri = redirect_uri or self.config.callback_url
        if redirect_uri:
            params["redirect_uri"] = redirect_uri

        if scope is None:
            scope = self.config.scope
        if isinstance(scope, str):
            scope = [scope]
        scope = list(scope)
        if scope:
            params["scope"] = self.config.scope_separator.join(scope)

        if state:
            params["state"] = state

        params.update(self._authorization_params(options))
        return _append_query(self.config.authorization_url, params)

    async def fetch_token(self, code: str, redirect_uri: str | None = None) -> dict[str, Any]:
        """
        Exchange authorization code for access token.

        Args:
            code: Authorization code from OAuth callback
            redirect_uri: Callback URL used in the authorization request

        Returns:
            Token response with access_token and any provider extras

        Raises:
            OAuthProviderError: Whatever the error hook produced, or
                InternalOAuthError for transport failures and unparseable bodies
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }
        redirect_uri = redirect_uri or self.config.callback_url
        if redirect_uri:
            data["redirect_uri"] = redirect_uri

        # Log sanitized exchange metadata (no secrets)
        code_hash = abs(hash(code))
        logger.info(
            f"Token exchange attempt | "
            f"code_hash={code_hash} "
            f"client_id={self.config.client_id} "
            f"redirect_uri={redirect_uri}"
        )

        async with self._http_client() as client:
            try:
                response = await client.post(
                    self.config.token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
            except httpx.RequestError as e:
                logger.error(f"Token exchange request failed: {str(e)}")
                raise InternalOAuthError("Failed to obtain access token", e) from e

        body = response.text
        if response.is_error:
            logger.error(f"Token exchange failed | code_hash={code_hash} status={response.status_code}")
            raise self._create_token_error(body, response.status_code)

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise InternalOAuthError("Failed to obtain access token", "invalid JSON in token response") from e

        if not isinstance(payload, dict) or "error" in payload:
            logger.error(f"Token exchange failed | code_hash={code_hash} status={response.status_code}")
            raise self._create_token_error(body, response.status_code)

        logger.info(f"Token exchange SUCCESS | code_hash={code_hash}")
        return payload

    def _create_token_error(self, body: str, status: int) -> Exception:
        try:
            error = self._parse_error_response(body, status)
        except (ValueError, TypeError, AttributeError):
            error = None
        if error is None:
            error = InternalOAuthError(
                "Failed to obtain access token",
                {"status_code": status, "data": body},
            )
        return error

    @staticmethod
    def default_parse_error_response(body: str, status: int) -> Exception | None:
        """Build an ``OAuthTokenError`` from a standard OAuth 2.0 error body."""
        payload = json.loads(body)
        if isinstance(payload, dict) and payload.get("error"):
            return OAuthTokenError(
                payload.get("error_description"),
                str(payload["error"]),
                payload.get("error_uri"),
                status,
            )
        return None

    async def get_protected_resource(self, url: str, access_token: str) -> tuple[str, httpx.Response]:
        """
        GET a resource on behalf of the user.

        The token travels as the ``access_token`` query parameter.

        Returns:
            Response body text and the response itself

        Raises:
            httpx.HTTPError: On transport failure or a non-2xx status
        """
        async with self._http_client() as client:
            response = await client.get(_append_query(url, {"access_token": access_token}))
        response.raise_for_status()
        return response.text, response
