"""Billing ledger settings configuration."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BillingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Shared secret used by the inference collaborator to report usage
    BILLING_SECRET: SecretStr = SecretStr("test-billing-secret")

    BILLING_MAX_MUTATION_ATTEMPTS: int = 5
    BILLING_ALERT_CHANNEL: str = "billing:alerts"
    DEFAULT_SCOPE_ID: str = "default"


__all__ = ["BillingSettings"]
