from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    APP_VERSION: str = "3.0.0"
    """Version string reported by the health endpoint."""

    HOST: str = "0.0.0.0"
    """Interface the uvicorn server binds to."""

    PORT: int = 3000
    """Port the uvicorn server listens on."""

    FRONTEND_URL: str = "http://localhost:3000"
    """Base URL of the frontend client application (allowed CORS origin)."""

    SECRET_KEY: str = "ubl-messenger-secret-key-change-in-production"
    """Secret key used for signing session tokens."""

    ALGORITHM: str = "HS256"
    """Algorithm used for JWT signing."""

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60
    """Duration (in minutes) before session tokens expire."""

    RP_ID: str = "localhost"
    """WebAuthn relying party identifier (the effective domain)."""

    RP_NAME: str = "UBL Messenger"
    """Human readable relying party name shown by authenticators."""

    ORIGIN: str = "http://localhost:3000"
    """Origin expected in WebAuthn client data."""

    DEFAULT_TENANT_ID: str = "T.UBL"
    """Tenant used when a request does not name one."""

    CHALLENGE_TTL_SECONDS: int = 300
    """Lifetime of an issued WebAuthn challenge."""

    TYPING_TTL_SECONDS: int = 5
    """Age after which a typing indicator is considered stale."""

    SEED_DEMO_DATA: bool = True
    """Load the demo users, conversations and messages on startup."""

    LOG_LEVEL: str = "INFO"
    """Root logging level (e.g., `DEBUG`, `INFO`)."""

    class Config:
        """
        Configuration for Pydantic settings. Loads values from `.env` file by default.
        """
        env_file = ".env"


# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
