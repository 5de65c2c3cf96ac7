import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from src.api.core.constants import BILLING_SECRET_HEADER
from src.api.core.exceptions.base import TokenMeterException
from src.api.core.messages import MessageCode
from src.database.connection import get_async_db
from src.modules.user.auth_handlers import handle_jwt_auth, handle_service_auth
from src.utils.path_helpers import AuthMode, auth_mode_for

logger = structlog.get_logger(__name__)


def _error_response(exc: TokenMeterException) -> JSONResponse:
    # Exceptions raised in middleware bypass the app's exception handlers
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response_dict(),
        headers=exc.headers,
    )


def _bearer_token(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token or " " in token:
        raise TokenMeterException(
            MessageCode.AUTH_REQUIRED,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Authorization header must be 'Bearer <token>'"},
        )
    return token


async def auth_middleware(request: Request, call_next):
    """Authenticate a request by JWT, or by billing secret on service endpoints."""
    path = request.url.path
    request.state.user = None
    request.state.service_caller = False

    mode = auth_mode_for(path, request.method)
    if mode == AuthMode.PUBLIC:
        logger.debug("Skipping auth for path", path=path)
        return await call_next(request)

    try:
        if mode == AuthMode.SERVICE:
            handle_service_auth(request.headers.get(BILLING_SECRET_HEADER))
            request.state.service_caller = True
        else:
            token = _bearer_token(request)
            async with get_async_db(request.app.state.session_factory) as db:
                request.state.user = await handle_jwt_auth(db, token)
    except TokenMeterException as e:
        logger.warning(
            "Authentication failed",
            path=path,
            auth_mode=mode.value,
            message_code=e.message_code.value,
        )
        return _error_response(e)

    if request.state.user is not None:
        structlog.contextvars.bind_contextvars(user_id=str(request.state.user.id))
    return await call_next(request)
