"""Library configuration using Pydantic Settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_RULESET_PATH = Path(__file__).resolve().parent.parent / "eligibility" / "data" / "eligibility.yaml"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MILPAY_",
        case_sensitive=False,
    )

    # Environment
    environment: str = "development"
    """Current environment (development, staging, production)."""

    debug: bool = False
    """Enable debug logging."""

    log_format: str | None = None
    """Logging format override (json or console). Defaults by environment."""

    # Tax tables
    default_tax_year: int = 2025
    """Tax year used when a caller does not pass one explicitly."""

    # Eligibility configuration
    ruleset_path: Path = DEFAULT_RULESET_PATH
    """YAML file holding pay types, questions, wizards and rules."""

    # Persistence
    storage_url: str = "memory://milpay"
    """Key-value store location (local path, file://, memory://, s3://, redis://)."""

    redis_url: str = "redis://localhost:6379/0"
    """Redis URL used when storage_url selects the Redis store."""

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, value: object) -> str | None:
        """Accept json/console in any case; blank means auto."""
        if value is None:
            return None
        text = str(value).strip().lower()
        if not text:
            return None
        if text not in {"json", "console"}:
            raise ValueError("MILPAY_LOG_FORMAT must be 'json' or 'console'.")
        return text

    @field_validator("default_tax_year")
    @classmethod
    def validate_tax_year(cls, value: int) -> int:
        """Reject obviously bogus tax years."""
        if value < 2000 or value > 2100:
            raise ValueError(f"default_tax_year out of range: {value}")
        return value


try:
    settings = Settings()
except Exception as exc:
    env_file = Path(".env")
    raise RuntimeError(
        "Failed to initialize milpay settings. "
        f"Check MILPAY_* environment variables in {env_file.resolve() if env_file.exists() else '.env'}.\n"
        + f"Error: {exc}\n"
        + "MILPAY_LOG_FORMAT accepts 'json' or 'console'; MILPAY_DEFAULT_TAX_YEAR must be a year."
    ) from exc
