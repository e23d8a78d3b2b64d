"""Factory function for creating a configured VK strategy."""
import logging
from collections.abc import Callable
from typing import Any

from vkontakte_auth.core.config import BaseAppSettings, settings as default_settings

from .providers import VKontakteStrategy

logger = logging.getLogger(__name__)


def create_vkontakte_strategy(
    verify: Callable[..., Any],
    settings: BaseAppSettings | None = None,
    **kwargs: Any,
) -> VKontakteStrategy | None:
    """
    Build a VKontakteStrategy from application settings.

    Args:
        verify: Application verify callback
        settings: Settings to read, defaults to the process settings
        **kwargs: Passed through to VKontakteStrategy (e.g. ``transport``)

    Returns:
        Configured strategy, or None when VK credentials are not configured
    """
    settings = settings or default_settings

    if not (settings.VK_CLIENT_ID and settings.VK_CLIENT_SECRET):
        logger.warning("VK OAuth not configured (missing client ID/secret)")
        return None

    options: dict[str, Any] = {
        "client_id": settings.VK_CLIENT_ID,
        "client_secret": settings.VK_CLIENT_SECRET,
        "callback_url": settings.VK_CALLBACK_URL,
        "scope": settings.VK_SCOPE,
        "profile_fields": settings.VK_PROFILE_FIELDS,
        "api_version": settings.VK_API_VERSION,
        "lang": settings.VK_LANG,
        "photo_size": settings.VK_PHOTO_SIZE,
    }
    kwargs.setdefault("timeout", settings.OAUTH_HTTP_TIMEOUT)
    strategy = VKontakteStrategy(options, verify, **kwargs)
    logger.info("VK OAuth strategy enabled")
    return strategy
