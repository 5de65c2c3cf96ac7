from functools import wraps

from fastapi import Request, status

from src.api.core.exceptions.base import TokenMeterException
from src.api.core.messages import MessageCode
from src.database.models import User, UserRole
from src.utils.logger import get_logger

logger = get_logger(__name__)


def _find_request(args: tuple, kwargs: dict) -> Request | None:
    candidates = (*args, *kwargs.values())
    return next((arg for arg in candidates if isinstance(arg, Request)), None)


def _authenticated_user(request: Request | None) -> User:
    user = getattr(request.state, "user", None) if request else None
    if user is None:
        raise TokenMeterException(
            MessageCode.AUTH_REQUIRED,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Authentication required"},
        )
    return user


def admin(require_superadmin: bool = False):
    """Restrict an endpoint to admins; balance-changing endpoints pass
    ``require_superadmin=True``.

    The endpoint must take ``request: Request`` so the user resolved by the
    auth middleware can be found.
    """
    required_role = UserRole.SUPERADMIN if require_superadmin else UserRole.ADMIN

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request = _find_request(args, kwargs)
            user = _authenticated_user(request)

            allowed = user.is_superadmin if require_superadmin else user.is_admin
            if not allowed:
                logger.warning(
                    "Unauthorized admin access attempt",
                    user_id=str(user.id),
                    endpoint=request.url.path,
                    required_role=required_role.value,
                )
                raise TokenMeterException(
                    MessageCode.AUTH_INSUFFICIENT_ROLE_PERMISSIONS,
                    status.HTTP_403_FORBIDDEN,
                    {"required_role": required_role.value},
                )

            logger.info(
                "Admin access granted",
                user_id=str(user.id),
                endpoint=request.url.path,
                required_role=required_role.value,
            )
            return await func(*args, **kwargs)

        return wrapper

    return decorator
