"""Application settings configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.settings.auth import AuthSettings
from src.utils.settings.billing import BillingSettings
from src.utils.settings.stripe import StripeSettings

# Values shipped for local development and tests only
_DEV_SECRETS = {
    "JWT_SECRET": "test-jwt-secret-key-for-testing-only",
    "BILLING_SECRET": "test-billing-secret",
    "STRIPE_WEBHOOK_SECRET": "whsec_test_webhook_secret",
}


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    SERVICE_NAME: str = "tokenmeter-api"
    API_VERSION: str = "0.1.0"
    PORT: int = 8010
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.upper() == "PROD"

    def validate_prod(self) -> None:
        """Refuse to start in production with development secrets or open CORS."""
        if not self.is_production:
            return
        if not self.CORS_ORIGINS:
            raise ValueError("CORS_ORIGINS must be set in production")

        configured = {
            "JWT_SECRET": AuthSettings().JWT_SECRET,
            "BILLING_SECRET": BillingSettings().BILLING_SECRET.get_secret_value(),
            "STRIPE_WEBHOOK_SECRET": (
                StripeSettings().STRIPE_WEBHOOK_SECRET.get_secret_value()
            ),
        }
        for name, value in configured.items():
            if value == _DEV_SECRETS[name]:
                raise ValueError(f"{name} must be set in production")
