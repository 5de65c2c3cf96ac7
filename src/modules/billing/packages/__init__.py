"""Pricing package catalogue."""

from .service import PACKAGES_CACHE_TAG, PricingPackageService

__all__ = ["PACKAGES_CACHE_TAG", "PricingPackageService"]
