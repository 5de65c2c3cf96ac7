"""Redis settings configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 20

    # Namespace for response-cache keys; alert channels are not prefixed
    REDIS_CACHE_PREFIX: str = "tokenmeter:cache"


__all__ = ["RedisSettings"]
