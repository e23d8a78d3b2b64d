import logging
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI

from vkontakte_auth.api.routes_oauth import router as oauth_router
from vkontakte_auth.core.config import BaseAppSettings, settings as default_settings
from vkontakte_auth.core.errors import register_error_handlers
from vkontakte_auth.core.logger import init_logging
from vkontakte_auth.services.oauth import create_vkontakte_strategy

logger = logging.getLogger(__name__)


def profile_as_user(access_token, refresh_token, profile, done):
    """Default verify callback: the normalized profile is the user."""
    done(None, profile)


def create_app(
    verify: Callable[..., Any] = profile_as_user,
    settings: BaseAppSettings | None = None,
    **strategy_kwargs: Any,
) -> FastAPI:
    settings = settings or default_settings
    init_logging()

    app = FastAPI(title=settings.APP_NAME)
    app.state.vkontakte_strategy = create_vkontakte_strategy(verify, settings, **strategy_kwargs)
    register_error_handlers(app)
    app.include_router(oauth_router)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "vkontakte": app.state.vkontakte_strategy is not None}

    return app
