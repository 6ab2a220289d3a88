"""Runtime configuration.

Every knob is an environment variable (or a ``.env`` entry) with the same
name as the field, case-insensitive.
"""

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings for the API, the message store and logging.

    Defaults run the service against a local SQLite file with the
    built-in template catalog.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./wishgen.db",
        description=(
            "Async database URL. SQLite via aiosqlite by default; "
            "use postgresql+asyncpg://... for PostgreSQL."
        ),
    )
    database_required: bool = Field(
        default=False,
        description="Refuse to start when the database cannot be initialized.",
    )

    # Template catalog
    catalog_path: Path | None = Field(
        default=None,
        description="Optional JSON template catalog. Built-in templates are used when unset.",
    )

    # Request limits
    prompt_max_length: int = Field(
        default=500,
        ge=1,
        description="Maximum accepted prompt length in characters.",
    )
    history_default_limit: int = Field(
        default=50,
        ge=1,
        description="Number of history records returned when no limit is given.",
    )
    history_max_limit: int = Field(
        default=200,
        ge=1,
        description="Upper bound for the history limit query parameter.",
    )

    # HTTP
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins.",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR.",
    )
    log_dir: Path = Field(
        default=Path("./logs"),
        description="Directory for info.log and error.log.",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept "debug", "Info", etc."""
        return v.upper()

    @field_validator("catalog_path")
    @classmethod
    def resolve_catalog_path(cls, v: Path | None) -> Path | None:
        if v is None:
            return None
        return v.expanduser().resolve()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def configure_logging(self) -> None:
        """Route structlog events through stdlib logging as JSON lines.

        Events emitted with ``get_logger`` end up in the same handlers as
        plain ``logging`` records, filtered by ``log_level``.
        """
        import structlog

        level = logging.getLevelName(self.log_level)
        if not isinstance(level, int):
            level = logging.INFO

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(format="%(message)s", level=level)
        logger.setLevel(level)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment once."""
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.configure_logging()
    return _settings
