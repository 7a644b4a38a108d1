import sys
from functools import lru_cache
from pathlib import Path

from loguru import logger as log
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    __version__: str = "0.1.0"

    # Archive location
    notes_dir: Path = Field(Path("."), validation_alias=AliasChoices("notes", "notes_dir"))
    archive_subdir: str = "shllm"
    recovery_dir: Path = Path(".")

    # Model endpoint
    openai_api_key: str = ""
    openai_base_url: str = "https://free.churchless.tech/v1"
    model_name: str = "gpt-3.5-turbo"
    request_timeout: float = 60.0
    connect_timeout: float = 15.0

    # Other settings
    max_history_messages: int | None = None
    system_prompt_path: Path | None = None

    # Logging
    log_lvl: str = "WARNING"
    log_path: Path = Path("logs/shllm.log")

    # pydantic-settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_logger(log_path: Path, level: str):
    log.remove()
    log.add(sys.stderr, format="{time} | {level} | {message}", level=level)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        return log
    log.add(
        log_path,
        format="{time} | {level} | {message}",
        level="DEBUG",
        rotation="1 days",
        retention="30 days",
        catch=True,
    )
    return log


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
logger = get_logger(settings.log_path, settings.log_lvl)
