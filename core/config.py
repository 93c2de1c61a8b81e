"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads for OrderDesk happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead,
or accept a Settings instance from the caller.

Design patterns used:
  lru_cache singleton: the first get_settings() call builds Settings and
      every later call gets that same object back.

  BaseSettings (pydantic-settings): each field is filled from the matching
      environment variable or .env entry, upper-cased
      (e.g. lockout_threshold -> LOCKOUT_THRESHOLD). Type coercion and bounds
      are enforced by Field constraints.

  @model_validator(mode="after"): Cross-field validation once every field is
      resolved. A configured seed administrator must satisfy the same password
      and email policy a registering user would.

Layer rule: core/ is the kernel. This module may not import from auth/,
orders/, audit/ or service.py.
"""

import logging
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.policy import validate_email, validate_name, validate_password

logger = logging.getLogger("orderdesk.config")

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env file.

    Every field has a default, so tests construct Settings(...) directly with
    overrides and need no .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Credential hashing (bcrypt_pbkdf via bcrypt.kdf)
    # ------------------------------------------------------------------

    # Linear cost: each round is one full bcrypt hash. 50 is the floor the
    # bcrypt library treats as safe without a warning.
    kdf_rounds: int = Field(default=50, ge=1)
    kdf_salt_bytes: int = Field(default=16, ge=16)
    kdf_key_bytes: int = Field(default=64, ge=16, le=512)

    # ------------------------------------------------------------------
    # Lockout and password rotation
    # ------------------------------------------------------------------

    lockout_threshold: int = Field(default=5, ge=1)
    lockout_minutes: int = Field(default=10, ge=1)
    password_history_limit: int = Field(default=3, ge=1)
    min_password_age_hours: int = Field(default=24, ge=0)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_token_bytes: int = Field(default=32, ge=32)

    # ------------------------------------------------------------------
    # Audit log
    # ------------------------------------------------------------------

    audit_capacity: int = Field(default=5000, ge=1)
    audit_default_limit: int = Field(default=200, ge=1)

    # ------------------------------------------------------------------
    # Seeded administrator (empty password = no seed account)
    # ------------------------------------------------------------------

    seed_admin_email: str = "admin@example.com"
    seed_admin_name: str = "Admin User"
    seed_admin_password: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_seed_admin(self) -> "Settings":
        """Refuse to start with a seed administrator that breaks policy.

        An empty seed_admin_password disables seeding entirely, which is the
        production default. When a password is given, it and the email must
        pass the same checks registration applies.
        """
        if not self.seed_admin_password:
            return self
        error = (
            validate_email(self.seed_admin_email)
            or validate_name(self.seed_admin_name)
            or validate_password(self.seed_admin_password)
        )
        if error:
            raise ValueError(f"Invalid seed administrator configuration: {error}")
        return self


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, built on first use.

    Components also accept an explicit Settings; tests pass one instead of
    clearing this cache.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Install the process-wide log format at the configured level.

    Called once from service.build_service(); library modules only create
    named loggers and never configure handlers themselves.
    """
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
