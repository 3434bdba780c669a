"""Library settings loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

LEEWAY_SECONDS_DEFAULT = 0
TOKEN_TTL_DEFAULT = 3600
MAX_TOKEN_LENGTH_DEFAULT = 65536


class JWSSettings(BaseSettings):
    """Token engine settings."""

    model_config = SettingsConfigDict(env_prefix="JWS_")

    leeway_seconds: int = LEEWAY_SECONDS_DEFAULT
    allow_unsigned: bool = False
    default_algorithm: str = "HS256"
    token_ttl: int = TOKEN_TTL_DEFAULT
    max_token_length: int = MAX_TOKEN_LENGTH_DEFAULT
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache(maxsize=1)
def get_settings() -> JWSSettings:
    """Return the process-wide settings, read once from the environment."""
    return JWSSettings()
