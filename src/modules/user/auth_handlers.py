"""Authentication handlers for user JWTs and the service billing secret."""

import hmac

from fastapi import status
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.constants import JWT_ALGORITHM
from src.api.core.exceptions.base import TokenMeterException
from src.api.core.messages import MessageCode
from src.database.models import User
from src.modules.user.management import UserManagementService
from src.utils.logger import get_logger
from src.utils.settings.auth import AuthSettings
from src.utils.settings.billing import BillingSettings

logger = get_logger(__name__)


def decode_jwt(token: str) -> dict:
    settings = AuthSettings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.warning(f"JWT decoding failed: {e}")
        raise TokenMeterException(
            MessageCode.INVALID_TOKEN,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Invalid or expired authentication token"},
        )

    if not payload.get("sub"):
        raise TokenMeterException(
            MessageCode.INVALID_TOKEN,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Token has no subject"},
        )
    if payload.get("role") == "anon":
        raise TokenMeterException(
            MessageCode.FORBIDDEN,
            status.HTTP_403_FORBIDDEN,
            {"description": "Anonymous access not permitted"},
        )
    return payload


async def handle_jwt_auth(db: AsyncSession, token: str) -> User:
    payload = decode_jwt(token)
    try:
        return await UserManagementService(db).handle_jwt_authentication(payload)
    except ValueError:
        raise TokenMeterException(
            MessageCode.INVALID_TOKEN,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Token subject is not a valid user id"},
        )


def handle_service_auth(secret: str | None) -> None:
    """Check the shared secret sent by the inference collaborator."""
    expected = BillingSettings().BILLING_SECRET.get_secret_value()
    if not secret or not hmac.compare_digest(secret.encode(), expected.encode()):
        raise TokenMeterException(
            MessageCode.INVALID_SERVICE_SECRET,
            status.HTTP_401_UNAUTHORIZED,
        )
