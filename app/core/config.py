"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, JWT secret, SMTP, PDF storage)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="gst_compliance",
        description="MongoDB database name"
    )

    # Authentication
    JWT_SECRET: str = Field(
        default="change-me-in-production",
        description="Secret used to sign access tokens"
    )
    JWT_ALGORITHM: str = Field(
        default="HS256",
        description="Signing algorithm for access tokens"
    )
    JWT_EXPIRES_MINUTES: int = Field(
        default=60 * 24 * 7,
        description="Access token lifetime in minutes (7 days)"
    )
    BCRYPT_ROUNDS: int = Field(
        default=10,
        description="bcrypt cost factor for password hashing"
    )
    MIN_PASSWORD_LENGTH: int = Field(
        default=8,
        description="Minimum accepted password length"
    )

    # Subscription plan applied to new businesses
    DEFAULT_SUBSCRIPTION_PLAN: str = Field(
        default="trial",
        description="Plan id assigned at registration (see utils.constants.SUBSCRIPTION_PLANS)"
    )

    # Invoice PDFs
    PDF_STORAGE_PATH: str = Field(
        default="storage/invoices",
        description="Directory generated invoice PDFs are written to"
    )

    # Outgoing email (invoice delivery); sending is disabled until SMTP_HOST and EMAIL_FROM are set
    SMTP_HOST: str = Field(default="", description="SMTP server hostname")
    SMTP_PORT: int = Field(default=587, description="SMTP server port")
    SMTP_USERNAME: str = Field(default="", description="SMTP login, optional for open relays")
    SMTP_PASSWORD: str = Field(default="", description="SMTP password")
    SMTP_USE_SSL: bool = Field(
        default=False,
        description="Implicit TLS (port 465); otherwise STARTTLS when credentials are set"
    )
    SMTP_TIMEOUT: float = Field(default=30.0, description="SMTP connect and send timeout in seconds")
    EMAIL_FROM: str = Field(default="", description="Sender address for invoice emails")
    EMAIL_FROM_NAME: str = Field(default="GST Compliance", description="Sender display name")

    # Web shell
    DEFAULT_ROUTE: str = Field(
        default="/app/dashboard",
        description="Route the error fallback sends users back to"
    )
    FRONTEND_BUNDLE_URL: str = Field(
        default="/static/app.js",
        description="Script loaded by the single-page app shell"
    )

    # API test harness
    API_BASE_URL: str = Field(
        default="http://localhost:5000",
        description="Base URL the API test suites run against"
    )
    HARNESS_TIMEOUT: float = Field(
        default=30.0,
        description="Per-request timeout for the API test suites in seconds"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("JWT_SECRET")
    def validate_jwt_secret(cls, v, values):
        """Ensure the signing secret is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("JWT_SECRET must be changed in production environment")
        return v

    @validator("BCRYPT_ROUNDS")
    def validate_bcrypt_rounds(cls, v):
        if v < 4 or v > 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.MONGODB_DB_NAME:
        errors.append("MONGODB_DB_NAME is required")

    if not settings.JWT_SECRET:
        errors.append("JWT_SECRET is required")

    if settings.JWT_EXPIRES_MINUTES <= 0:
        errors.append("JWT_EXPIRES_MINUTES must be positive")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
