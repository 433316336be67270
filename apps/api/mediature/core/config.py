"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    VERSION: str = "0.1.0"

    # Database
    DATABASE_URL: str

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 12

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Public frontend, used to build links sent by email
    APP_BASE_URL: str = "http://localhost:3000"

    # Transactional email (Resend-compatible HTTP API)
    MAILER_API_URL: str = "https://api.resend.com/emails"
    MAILER_API_KEY: str = ""
    MAILER_FROM: str = "Médiature <noreply@mediature.local>"

    # Live chat identity verification
    LIVE_CHAT_SIGNATURE_SECRET: str = ""

    # Password reset links
    PASSWORD_RESET_EXPIRES_MINUTES: int = 60

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_AUTH: int = 5  # Sign-in / sign-up attempts
    RATE_LIMIT_API: int = 120  # General API

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV != "dev"

    @property
    def mailer_configured(self) -> bool:
        return bool(self.MAILER_API_KEY)


settings = Settings()
