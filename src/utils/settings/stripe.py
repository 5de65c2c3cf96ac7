"""Stripe settings configuration."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class StripeSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    STRIPE_WEBHOOK_SECRET: SecretStr = SecretStr("whsec_test_webhook_secret")
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300
