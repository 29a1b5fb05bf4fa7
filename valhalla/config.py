"""Valhalla configuration via Pydantic Settings.

All settings are read from environment variables or a .env file. The four
AURORA_* connection values are optional here; the client refuses to start
without them (see ValhallaDB).
"""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from valhalla.errors import ValhallaConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Valhalla"

    # JSON bundle: {"username": "...", "password": "..."}
    aurora_creds: Optional[SecretStr] = None
    aurora_host: Optional[str] = None
    aurora_port: Optional[str] = None  # parsed by the client so a bad value is a config error
    aurora_database: Optional[str] = None

    # Anything other than "development" enforces verified TLS
    environment: str = "production"

    log_level: str = "INFO"
    log_json: bool = True


class AuroraCredentials(BaseModel):
    username: str
    password: SecretStr


def parse_credentials(raw: str) -> AuroraCredentials:
    """Parse the AURORA_CREDS bundle, raising ValhallaConfigError if malformed."""
    try:
        return AuroraCredentials.model_validate_json(raw)
    except ValidationError as exc:
        raise ValhallaConfigError(
            f"Invalid creds: expected a JSON object with username and password "
            f"({exc.error_count()} errors)"
        ) from exc


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
