from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Shared secret of the identity provider that signs user JWTs
    JWT_SECRET: str = "test-jwt-secret-key-for-testing-only"
    JWT_AUDIENCE: str = "authenticated"
