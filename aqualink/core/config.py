import json
import secrets
from typing import Annotated, List, Literal, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def normalize_database_url(raw: Optional[str]) -> str:
    """
    Map plain Postgres URLs (as handed out by hosting providers) onto the
    asyncpg driver. Anything else is passed through untouched.
    """
    raw = (raw or "").strip()
    if not raw:
        return "sqlite+aiosqlite:///./aqualink.db"
    if raw.startswith("postgres://"):
        return "postgresql+asyncpg://" + raw[len("postgres://"):]
    if raw.startswith("postgresql://"):
        return "postgresql+asyncpg://" + raw[len("postgresql://"):]
    return raw


class Settings(BaseSettings):
    PROJECT_NAME: str = "AquaLink"
    API_PREFIX: str = "/api"

    # Security
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    JWT_ALGORITHM: str = "HS256"

    # CORS
    CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str):
            return json.loads(v)
        elif isinstance(v, list):
            return v
        raise ValueError(v)

    # Storage
    STORAGE_BACKEND: Literal["memory", "database"] = "database"
    DATABASE_URL: str = "sqlite+aiosqlite:///./aqualink.db"
    SQL_ECHO: bool = False

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        return normalize_database_url(v)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        extra="allow",
    )


settings = Settings()
