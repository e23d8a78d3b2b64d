"""VK.com (VKontakte) OAuth 2.0 authentication for web applications."""
from vkontakte_auth.services.oauth import (
    AuthenticationResult,
    NormalizedProfile,
    VKontakteStrategy,
)

__all__ = ["AuthenticationResult", "NormalizedProfile", "VKontakteStrategy"]

__version__ = "0.1.0"
