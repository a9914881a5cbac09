# ticketing_auth/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Common env vars (.env):
      - DATABASE_URL (defaults to a local SQLite file)
      - GOOGLE_CLIENT_IDS / APPLE_CLIENT_IDS (comma-separated audiences)
      - SMTP_* (password reset e-mails)

    Development only:
      - ALLOW_ROLE_ON_REGISTER: lets clients pick a role at registration
    """

    PROJECT_NAME: str = "Ticketing Identity API"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Comma-separated list of allowed browser origins
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Database
    DATABASE_URL: str = "sqlite:///./ticketing_auth.db"
    # Appended to PostgreSQL URLs only (e.g. "require" in the cloud)
    DATABASE_SSLMODE: str | None = None

    # Registration
    ALLOW_ROLE_ON_REGISTER: bool = False

    # Credentials and sessions
    BCRYPT_ROUNDS: int = 12
    SESSION_TOKEN_TTL_MINUTES: int | None = None

    # Password reset
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    PASSWORD_RESET_THROTTLE_SECONDS: int = 60
    PASSWORD_RESET_URL: str = "http://localhost:3000/reset-password?token={token}&email={email}"

    SUPPORT_CONTACT: str = "SpotSeeker.lk"

    # External identity providers
    GOOGLE_CLIENT_IDS: str = ""
    APPLE_CLIENT_IDS: str = ""
    APPLE_KEYS_URL: str = "https://appleid.apple.com/auth/keys"
    APPLE_ISSUER: str = "https://appleid.apple.com"
    FACEBOOK_GRAPH_URL: str = "https://graph.facebook.com/v19.0"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # SMTP
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM_EMAIL: str | None = None
    SMTP_FROM_NAME: str = "SpotSeeker"
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @staticmethod
    def _split(raw: str) -> list[str]:
        return [item.strip() for item in raw.split(",") if item.strip()]

    @property
    def cors_origins(self) -> list[str]:
        return self._split(self.CORS_ORIGINS)

    @property
    def google_client_ids(self) -> list[str]:
        return self._split(self.GOOGLE_CLIENT_IDS)

    @property
    def apple_client_ids(self) -> list[str]:
        return self._split(self.APPLE_CLIENT_IDS)


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
