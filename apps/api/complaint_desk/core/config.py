"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # Admin session token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 4

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"

    # Rate Limiting (requests per minute)
    RATE_LIMIT_API: int = 60  # General API
    RATE_LIMIT_SUBMIT: int = 10  # Complaint submissions and replies

    # Complaint intake
    COMPLAINT_DEPARTMENTS: str = ""  # Comma-separated; empty accepts any department
    COMPLAINT_DESCRIPTION_MIN_LENGTH: int = 10

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def departments_list(self) -> list[str]:
        """Parse COMPLAINT_DEPARTMENTS into a sorted, de-duplicated list."""
        if not self.COMPLAINT_DEPARTMENTS:
            return []
        return sorted({d.strip() for d in self.COMPLAINT_DEPARTMENTS.split(",") if d.strip()})

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets


settings = Settings()
