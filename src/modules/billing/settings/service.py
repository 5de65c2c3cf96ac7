"""System settings service."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.core.base import BaseService
from src.database.models import GLOBAL_SETTINGS_KEY, SystemSettings
from src.modules.billing.exceptions import InvalidAmountException
from src.modules.billing.settings.snapshot import SettingsSnapshot

_POSITIVE_INT_FIELDS = (
    "tokens_per_usd",
    "min_purchase_minor_units",
)
_NON_NEGATIVE_INT_FIELDS = (
    "new_account_bonus",
    "low_balance_threshold",
    "critical_balance_threshold",
)


class SystemSettingsService(BaseService):
    """Read and administer the global settings row."""

    async def _get_row(self) -> SystemSettings | None:
        stmt = select(SystemSettings).where(SystemSettings.key == GLOBAL_SETTINGS_KEY)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_snapshot(self) -> SettingsSnapshot:
        """Load the current settings once; defaults apply when no row exists."""
        row = await self._get_row()
        if row is None:
            return SettingsSnapshot()
        return SettingsSnapshot.from_model(row)

    async def initialize_defaults(self) -> SystemSettings:
        """Create the settings row with defaults if it does not exist yet."""
        row = await self._get_row()
        if row is not None:
            return row

        defaults = SettingsSnapshot().to_dict()
        row = SystemSettings(key=GLOBAL_SETTINGS_KEY, **defaults)
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError:
            # Another worker initialized first
            await self.db.rollback()
            row = await self._get_row()
        else:
            self.logger.info("Initialized default system settings")
        return row

    async def update_settings(
        self, updates: dict, updated_by: UUID | None = None
    ) -> SettingsSnapshot:
        """Apply a partial update. Affects subsequent charges only."""
        self._validate_updates(updates)
        row = await self.initialize_defaults()

        for field_name, value in updates.items():
            if field_name == "image_costs":
                value = {**(row.image_costs or {}), **value}
            setattr(row, field_name, value)
        row.updated_by_id = updated_by

        await self.db.commit()
        self.logger.info(
            "System settings updated",
            fields=sorted(updates.keys()),
            updated_by=str(updated_by) if updated_by else None,
        )
        return SettingsSnapshot.from_model(row)

    def _validate_updates(self, updates: dict) -> None:
        multiplier = updates.get("default_multiplier")
        if multiplier is not None and multiplier <= 0:
            raise InvalidAmountException(multiplier, field="default_multiplier")

        for field_name in _POSITIVE_INT_FIELDS:
            value = updates.get(field_name)
            if value is not None and value <= 0:
                raise InvalidAmountException(value, field=field_name)

        for field_name in _NON_NEGATIVE_INT_FIELDS:
            value = updates.get(field_name)
            if value is not None and value < 0:
                raise InvalidAmountException(value, field=field_name)

        for key, cost in (updates.get("image_costs") or {}).items():
            if cost <= 0:
                raise InvalidAmountException(cost, field=f"image_costs.{key}")
