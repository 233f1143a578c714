# forgeblock/core/config.py
import logging
import pathlib
import secrets
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from forgeblock.core.errors import ConfigurationError

logger = logging.getLogger("forgeblock.core.config")  # Logger for this module

BASE_DIR = pathlib.Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    PROJECT_NAME: str = "ForgeBlock Account Backend"
    VERSION: str = "0.1"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"

    # Leave unset to run on the non-durable in-memory store (single process only)
    DATABASE_URL: Optional[str] = None
    # Upper bound for any single storage call (pool checkout, connect, statement)
    DB_TIMEOUT_SECONDS: int = 5

    # Must be set whenever DATABASE_URL is set. Never rotated at runtime.
    JWT_SECRET_KEY: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    TOKEN_SIGNATURE_DAYS: int = 30  # Lifetime of the signature itself
    SESSION_REMEMBER_DAYS: int = 30  # Effective session length with "remember me"
    SESSION_DEFAULT_DAYS: int = 1

    AUTH_COOKIE_NAME: str = "authToken"
    USERNAME_COOKIE_NAME: str = "username"
    COOKIE_SECURE: bool = False  # Set to True behind HTTPS in production

    BCRYPT_ROUNDS: int = 10
    PASSWORD_MIN_LENGTH: int = 4
    RECENT_ACTIVITY_HOURS: int = 24

    # Observed behaviour: logout only clears cookies and the token stays valid.
    # Flip this once the product decision is made.
    LOGOUT_REVOKES_SERVER_TOKEN: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_durable(self) -> bool:
        return bool(self.DATABASE_URL)


def resolve_signing_key(settings: Settings) -> str:
    """
    Returns the process-wide JWT signing key.
    A durable deployment without an explicit key refuses to start; the
    in-memory dev mode falls back to a random key that dies with the process.
    """
    if settings.JWT_SECRET_KEY:
        return settings.JWT_SECRET_KEY
    if settings.is_durable:
        raise ConfigurationError("JWT_SECRET_KEY must be set when DATABASE_URL is configured.")
    logger.warning("JWT_SECRET_KEY not set. Generated a per-process key; tokens will not survive a restart.")
    return secrets.token_urlsafe(48)


@lru_cache()
def get_settings():
    settings_instance = Settings()
    logger.info(f"Settings loaded for environment '{settings_instance.ENVIRONMENT}' "
                f"({'durable database' if settings_instance.is_durable else 'in-memory store'})")
    return settings_instance

settings = get_settings()
