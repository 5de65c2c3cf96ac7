"""Global billing settings."""

from .service import SystemSettingsService
from .snapshot import SettingsSnapshot

__all__ = ["SettingsSnapshot", "SystemSettingsService"]
