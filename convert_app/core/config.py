from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    PROJECT_NAME: str = "File Conversion Gateway"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Storage areas
    UPLOAD_DIR: Path = Path("./uploads")
    CONVERTED_DIR: Path = Path("./converted")
    MAX_UPLOAD_MB: int = 500

    # File lifecycle
    DOWNLOAD_DELETE_DELAY_SECONDS: float = 10
    CLEANUP_INTERVAL_SECONDS: float = 60 * 60
    MAX_FILE_AGE_SECONDS: float = 2 * 60 * 60

    RATE_LIMIT: str = "60/minute"
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("UPLOAD_DIR", "CONVERTED_DIR")
    @classmethod
    def resolve_directory(cls, v: Path) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("MAX_UPLOAD_MB", "CLEANUP_INTERVAL_SECONDS", "MAX_FILE_AGE_SECONDS")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("DOWNLOAD_DELETE_DELAY_SECONDS")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("DOWNLOAD_DELETE_DELAY_SECONDS cannot be negative")
        return v

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024

    class Config:
        env_file = ".env"


settings = Settings()
