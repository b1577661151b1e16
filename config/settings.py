# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.constants import ExternalURIs
from util.enums import BackendKind, Environment


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    PORT: int = Field(default=8080, validation_alias="PORT")
    ALLOWED_ORIGIN: str = Field(default="*", validation_alias="ALLOWED_ORIGIN")
    FRONTEND_DIR: str = Field(default="front-end", validation_alias="FRONTEND_DIR")

    # Allocation
    MAX_BATCH: int = Field(default=5000, ge=1, validation_alias="MAX_BATCH")
    HISTORY_MAX_ATTEMPTS: int = Field(
        default=3, ge=1, validation_alias="HISTORY_MAX_ATTEMPTS"
    )
    # Out-of-range levels fall back to 6 inside the codec.
    HISTORY_ZLIB_LEVEL: int = Field(default=6, validation_alias="HISTORY_ZLIB_LEVEL")

    # Backend selection: auto | file | gist | redis
    HISTORY_BACKEND: BackendKind = Field(
        default=BackendKind.AUTO, validation_alias="HISTORY_BACKEND"
    )

    # Local file backend
    HISTORY_FILE: str = Field(default="data/history.bin", validation_alias="HISTORY_FILE")
    MAX_HISTORY_FILE_BYTES: int = Field(
        default=100 * 1024 * 1024, validation_alias="MAX_HISTORY_FILE_BYTES"
    )

    # GitHub Gist backend
    HISTORY_GIST_ID: str = Field(default="", validation_alias="HISTORY_GIST_ID")
    HISTORY_GITHUB_TOKEN: str = Field(default="", validation_alias="HISTORY_GITHUB_TOKEN")
    HISTORY_GIST_FILENAME: str = Field(
        default="history.bin.b64", validation_alias="HISTORY_GIST_FILENAME"
    )
    GITHUB_API_URL: str = Field(default=ExternalURIs.GITHUB_API, validation_alias="GITHUB_API_URL")

    # Redis backend
    HISTORY_REDIS_URL: str = Field(default="", validation_alias="HISTORY_REDIS_URL")
    HISTORY_REDIS_KEY: str = Field(
        default="namegen:history", validation_alias="HISTORY_REDIS_KEY"
    )

    HTTP_TIMEOUT_SECONDS: float = Field(
        default=20.0, gt=0, validation_alias="HTTP_TIMEOUT_SECONDS"
    )

    # Logging knobs
    LOGGER_NAME: str = "namegen"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
