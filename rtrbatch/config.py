"""
rtrbatch configuration

Credentials and connection settings are read from, in order of precedence:
1. Environment variables
2. A .env file (default: ./.env, a missing file is ignored)

Keys:
- CLIENT_ID / CLIENT_SECRET: OAuth2 client credentials
- BASE_URL: API root (default: https://api.crowdstrike.com)
- VERIFY_CERT: Verify the server TLS certificate (default: true)
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .api import DEFAULT_BASE_URL


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    verify_cert: bool = True

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)


def load_settings(env_file: Optional[str] = ".env") -> Settings:
    """Load settings from the environment and the given .env file."""
    return Settings(_env_file=env_file)
