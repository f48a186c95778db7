"""Runtime configuration for the forum API, read from the environment or `.env`."""

from datetime import UTC, datetime

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Every tunable of the forum: database, tokens, ranking, pagination, votes."""

    # Application metadata
    app_name: str = Field(default="Forum Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Session tokens (only used to resolve the registered voter)
    secret_key: str = Field(default="dev-secret-change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./forum.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Hot ranking: score = sign * log10(|net|) + (created_at - epoch) / decay
    hot_score_epoch: datetime = Field(
        default=datetime(2024, 1, 1, tzinfo=UTC),
        alias="HOT_SCORE_EPOCH",
    )
    hot_score_decay_seconds: float = Field(
        default=45_000.0,
        gt=0,
        alias="HOT_SCORE_DECAY_SECONDS",
    )

    # Feed pagination
    pagination_default_limit: int = Field(default=20, ge=1, alias="PAGINATION_DEFAULT_LIMIT")
    pagination_max_limit: int = Field(default=50, ge=1, alias="PAGINATION_MAX_LIMIT")

    # Vote ledger conflict handling
    vote_max_retries: int = Field(default=3, ge=0, alias="VOTE_MAX_RETRIES")

    # Browser clients
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("hot_score_epoch")
    @classmethod
    def _epoch_as_utc(cls, value: datetime) -> datetime:
        # Naive epochs are interpreted as UTC so subtraction never mixes kinds.
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="after")
    def _check_pagination(self) -> "Settings":
        if self.pagination_default_limit > self.pagination_max_limit:
            raise ValueError("PAGINATION_DEFAULT_LIMIT must not exceed PAGINATION_MAX_LIMIT")
        return self

    @property
    def effective_database_url(self) -> str:
        """``TEST_DATABASE_URL`` when ``USE_TEST_DATABASE`` is on, else ``DATABASE_URL``."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """Effective URL with async drivers swapped for their sync equivalents."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url


settings = Settings()
