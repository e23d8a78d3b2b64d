"""OAuth service exceptions.

Hierarchy:
- OAuthProviderError: base for everything raised or reported by the flow
- InternalOAuthError: transport level failure talking to the provider
- OAuthTokenError: standard OAuth 2.0 error body from the token endpoint
- VKontakteError: VK payload errors (message + numeric code)
"""
from __future__ import annotations

from typing import Any


class OAuthProviderError(Exception):
    """Raised when OAuth provider communication fails."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "message": self.message,
                "code": getattr(self, "code", None),
                "type": type(self).__name__,
            }
        }


class OAuthConfigurationError(OAuthProviderError):
    """Raised when the OAuth client is missing required settings."""


class StrategyConfigurationError(OAuthProviderError):
    """Raised when the application's verify callback has an unsupported shape."""


class InternalOAuthError(OAuthProviderError):
    """Wraps a transport failure (network, TLS, timeout, unexpected status)."""

    def __init__(self, message: str, oauth_error: Any = None):
        super().__init__(message)
        self.oauth_error = oauth_error

    def __str__(self) -> str:
        if self.oauth_error is None:
            return self.message
        return f"{self.message}: {self.oauth_error}"


class OAuthTokenError(OAuthProviderError):
    """Raised when token exchange fails with a standard OAuth 2.0 error body."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        uri: str | None = None,
        status: int | None = None,
    ):
        super().__init__(message or code or "Token exchange failed")
        self.code = code or "server_error"
        self.uri = uri
        self.status = status if status is not None else 500


class OAuthAuthorizationError(OAuthProviderError):
    """The provider redirected back with an ``error`` instead of a code."""

    def __init__(self, message: str, code: str | None = None, uri: str | None = None, status: int = 500):
        super().__init__(message or code or "Authorization failed")
        self.code = code or "server_error"
        self.uri = uri
        self.status = status


class ProfileParseError(OAuthProviderError):
    """Raised when a profile response is not JSON or lacks the expected shape."""


class VKontakteError(OAuthProviderError):
    """Base class for errors reported by VK in its own payload format."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class VKontakteAPIError(VKontakteError):
    """The API method answered, but its payload carries an ``error`` object."""


class VKontakteTokenError(VKontakteError):
    """The token endpoint answered the code exchange with a VK ``error`` object."""


class VKontakteAuthorizationError(VKontakteError):
    """VK redirected back to the callback URL with an ``error`` instead of a code."""

    def __init__(self, message: str, code: int | str | None = None, status: int = 500):
        super().__init__(message, code)
        self.status = status
