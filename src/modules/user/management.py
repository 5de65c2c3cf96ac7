"""User records mirrored from the identity provider."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError

from src.core.base import BaseService
from src.database.models import User
from src.modules.user.jwt_claims import extract_user_data_from_jwt


class UserManagementService(BaseService):
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        return await self.db.get(User, user_id)

    async def create_user(
        self,
        user_id: UUID,
        email: str,
        name: str | None = None,
        roles: list[str] | None = None,
    ) -> User:
        """Create a new user."""
        user = User(id=user_id, email=email, name=name or "", roles=roles or [])
        self.db.add(user)
        await self.db.commit()

        self.logger.info("Created user", user_id=str(user_id), email=email)
        return user

    async def handle_jwt_authentication(self, payload: dict) -> User:
        """Return the user behind verified JWT claims, creating it on first sight."""
        user_data = extract_user_data_from_jwt(payload)
        user_id = user_data["user_id"]

        user = await self.get_user_by_id(user_id)
        if user is None:
            try:
                return await self.create_user(
                    user_id=user_id,
                    email=user_data["email"],
                    name=user_data["name"],
                    roles=user_data["roles"],
                )
            except IntegrityError:
                # Concurrent first requests for the same subject
                await self.db.rollback()
                user = await self.get_user_by_id(user_id)
                if user is None:
                    raise

        changed = False
        if user_data["email"] and user.email != user_data["email"]:
            user.email = user_data["email"]
            changed = True
        if user_data["roles"] is not None and user.roles != user_data["roles"]:
            user.roles = user_data["roles"]
            changed = True
        if changed:
            await self.db.commit()
            self.logger.info("Synced user from token claims", user_id=str(user_id))
        return user
