"""Configuration management using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_path: str = "./data/quizauth.db"
    api_prefix: str = "/api/auth"
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # JWT Configuration
    # Either seconds (int) or a "<n>d|h|m|s" string; anything else means 7 days
    jwt_secret_key: str = "change-me-in-production-use-env-var"
    jwt_expires_in: int | str | None = "7d"

    # Role assigned to newly registered users
    default_role: str = "user"

    # Bcrypt work factor (higher = more secure but slower)
    # Tests lower this to 4 through the BCRYPT_WORK_FACTOR env var
    bcrypt_work_factor: int = 12

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )


settings = Settings()
