"""Test factories for TokenMeter API models."""

from .base import AsyncSQLAlchemyModelFactory
from .users import UserFactory
from .accounts import AccountFactory, PricingPackageFactory

__all__ = [
    "AsyncSQLAlchemyModelFactory",
    "UserFactory",
    "AccountFactory",
    "PricingPackageFactory",
]
