"""VK.com OAuth 2.0 authentication.

A generic authorization code flow (``OAuth2Client`` + ``OAuth2Strategy``)
with VK specifics plugged in through hooks:

- display mode on the authorization request
- token endpoint error translation
- ``users.get`` profile normalization
- email claim merged from the token response
"""
from vkontakte_auth.models.schemas import Gender, NormalizedProfile, ProfileName, ProfileValue

from .client import OAuth2Client
from .exceptions import (
    InternalOAuthError,
    OAuthAuthorizationError,
    OAuthConfigurationError,
    OAuthProviderError,
    OAuthTokenError,
    ProfileParseError,
    StrategyConfigurationError,
    VKontakteAPIError,
    VKontakteAuthorizationError,
    VKontakteError,
    VKontakteTokenError,
)
from .factory import create_vkontakte_strategy
from .providers import CallbackShape, VerifyAdapter, VKontakteStrategy
from .strategy import AuthenticationResult, OAuth2Strategy

__all__ = [
    # Exceptions
    "InternalOAuthError",
    "OAuthAuthorizationError",
    "OAuthConfigurationError",
    "OAuthProviderError",
    "OAuthTokenError",
    "ProfileParseError",
    "StrategyConfigurationError",
    "VKontakteAPIError",
    "VKontakteAuthorizationError",
    "VKontakteError",
    "VKontakteTokenError",
    # Profile
    "Gender",
    "NormalizedProfile",
    "ProfileName",
    "ProfileValue",
    # Flow
    "AuthenticationResult",
    "CallbackShape",
    "OAuth2Client",
    "OAuth2Strategy",
    "VKontakteStrategy",
    "VerifyAdapter",
    # Factory
    "create_vkontakte_strategy",
]
