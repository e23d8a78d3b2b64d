import logging
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from vkontakte_auth.services.oauth.exceptions import OAuthProviderError

logger = logging.getLogger("vkontakte_auth.errors")


def register_error_handlers(app):
    @app.exception_handler(OAuthProviderError)
    async def oauth_provider_error(request: Request, exc: OAuthProviderError):
        logger.warning("OAuth error path=%s type=%s message=%s", request.url.path, type(exc).__name__, exc.message)
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):  # noqa: BLE001
        correlation_id = uuid.uuid4().hex
        logger.exception("Unhandled error cid=%s path=%s method=%s", correlation_id, request.url.path, request.method)
        return JSONResponse(status_code=500, content={"detail": "Internal server error", "cid": correlation_id})

    return app
