"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for filevault happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.
Components receive the values they need as constructor arguments; only the
composition points (api/main.py lifespan, main.py) call get_settings().

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): dev mode generates a signing key with a
      warning, production mode refuses to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. Every session token is
  signed with it, so whoever holds it can mint a token for any namespace.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
storage/, or audit/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("filevault.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    # Empty string is the sentinel for "not configured". JWT_SECRET is accepted
    # for deployments that still carry the old variable name.
    secret_key: str = Field(default="", validation_alias=AliasChoices("secret_key", "jwt_secret"))

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    token_expire_seconds: int = 3600

    # ------------------------------------------------------------------
    # Storage and audit
    # ------------------------------------------------------------------

    storage_base_dir: str = "home"
    audit_log_path: str = "audit/record.txt"
    max_upload_bytes: int = 50 * 1024 * 1024

    # ------------------------------------------------------------------
    # Directory service (LDAP)
    # ------------------------------------------------------------------

    ldap_url: str = ""
    ldap_bind_dn: str = ""
    ldap_bind_password: str = ""
    ldap_base: str = ""
    ldap_username_attribute: str = "uid"
    ldap_timeout_seconds: int = 10

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True
    cors_origins: list[str] = ["*"]
    allowed_hosts: list[str] = ["*"]

    host: str = "0.0.0.0"  # nosec B104 -- server bind address, overridable
    port: int = 3001
    tls_keyfile: str = ""
    tls_certfile: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
