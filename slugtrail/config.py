"""Configuration management for slugtrail."""

from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from .identifiers import is_unfriendly_id, slugify

# .env.local wins over .env
load_dotenv(dotenv_path=Path.cwd() / ".env.local", override=True)
load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)


class Settings(BaseSettings):
    """Process-wide defaults loaded from environment variables."""

    # Database
    database_url: str = Field(
        default="sqlite:///data/slugtrail.db",
        alias="SLUGTRAIL_DATABASE_URL"
    )
    sql_echo: bool = Field(default=False, alias="SLUGTRAIL_SQL_ECHO")

    # Slug generation
    sequence_separator: str = Field(default="--", alias="SLUGTRAIL_SEQUENCE_SEPARATOR")
    reserved_words: List[str] = Field(
        default_factory=lambda: ["new", "edit"],
        alias="SLUGTRAIL_RESERVED_WORDS"
    )

    # Conflict retries (see Database.transaction)
    max_conflict_retries: int = Field(default=3, alias="SLUGTRAIL_MAX_CONFLICT_RETRIES")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    logs_dir: Path = Field(default=Path("data") / "logs", alias="SLUGTRAIL_LOGS_DIR")

    class Config:
        env_file = [".env.local", ".env"]  # Check .env.local first, then .env
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


class SlugConfig(BaseModel):
    """Slug behaviour for one model class.

    Built once per model and handed to the store, resolver, assigner and
    resolver chain at construction. History and scoping are plain flags that
    those components branch on.
    """

    subject_type: Optional[str] = Field(
        default=None,
        description="Discriminator stored in slug records. Defaults to the model class name.",
    )
    slug_column: str = Field(default="slug", description="Attribute holding the current slug")
    source_column: Optional[str] = Field(
        default=None,
        description="Attribute the slug is generated from (e.g. 'title')",
    )
    sequence_separator: str = Field(default="--")
    history: bool = Field(default=False, description="Record every slug in the slugs table")
    scope_columns: Tuple[str, ...] = Field(
        default=(),
        description="Columns partitioning slug uniqueness",
    )
    reserved_words: Tuple[str, ...] = Field(default=("new", "edit"))
    normalizer: Callable[[str], str] = slugify
    unfriendly_id: Callable[[Any], bool] = is_unfriendly_id

    model_config = ConfigDict(frozen=True)

    @field_validator("sequence_separator")
    @classmethod
    def _separator_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("sequence_separator must not be empty")
        return value

    @field_validator("scope_columns", mode="before")
    @classmethod
    def _scope_as_tuple(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(value)

    @property
    def scoped(self) -> bool:
        return bool(self.scope_columns)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides) -> "SlugConfig":
        """Build a config seeded with the process defaults from ``Settings``."""
        settings = settings or get_settings()
        values = {
            "sequence_separator": settings.sequence_separator,
            "reserved_words": tuple(settings.reserved_words),
        }
        values.update(overrides)
        return cls(**values)
