"""
Environment configuration for the budget hotel service.
Every field can be overridden by an environment variable of the same name
or a line in .env; values are validated when Settings is built.
"""

from typing import List, Union
from pathlib import Path
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# .env values become process environment for libraries that read os.environ
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)

MIN_ENCRYPTION_KEY_LENGTH = 32


class Settings(BaseSettings):
    """Runtime configuration; one instance per process via get_settings()"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @staticmethod
    def get_secret_key_default() -> str:
        """Random key for local runs; production sets ENCRYPTION_KEY explicitly"""
        import secrets
        import string
        alphabet = string.ascii_letters + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(MIN_ENCRYPTION_KEY_LENGTH))

    # Application configuration
    APP_NAME: str = "Budget Hotel Reservations"
    API_VERSION: str = "v1"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = Field(default=["*"])

    # Database configuration
    DATABASE_URL: str = "sqlite:///./budget_hotel.db"
    DATABASE_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10

    # Security configuration. Promotion usage matching compares ciphertexts,
    # so the key must stay stable across restarts in any real deployment.
    ENCRYPTION_KEY: str = Field(default_factory=lambda: Settings.get_secret_key_default())

    # Business rules
    CURRENCY: str = "RM"
    REFUND_PERCENTAGE: int = Field(default=80, ge=0, le=100)
    NO_SHOW_GRACE_DAYS: int = Field(default=1, ge=0)

    # Background maintenance
    SWEEP_ENABLED: bool = True
    SWEEP_INTERVAL_SECONDS: int = Field(default=3600, gt=0)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"
    LOG_DIR: str = ""
    LOG_STRUCTURED: bool = True

    # Validators
    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Accept a JSON list or a comma-separated string"""
        if isinstance(v, str):
            if v.startswith('[') and v.endswith(']'):
                import json
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in {"console", "json"}:
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")
        return v

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
