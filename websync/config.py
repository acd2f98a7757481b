import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Type

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

load_dotenv()
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.toml"
DEFAULT_UPTIME_INTERVAL = 60


def config_file_path() -> Path:
    return Path(os.getenv("WEBSYNC_CONFIG_FILE", DEFAULT_CONFIG_FILE))


class BackupTargetConfig(BaseModel):
    description: str = Field(..., min_length=1, description="Target name, also the storage folder")
    url: str = Field(..., description="Route that returns a single file for backup")
    restore: str = Field(default="", description="Route that accepts a single file for restoring")
    max: int = Field(default=5, ge=0)
    interval: Literal["h", "d", "w", "m"] = "d"
    time: int = Field(default=0, ge=0, description="Minute offset (UTC) of the backup")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("description must not be empty")
        if "/" in v or "\\" in v:
            raise ValueError("description must not contain path separators")
        if v in (".", "..") or ".." in v:
            raise ValueError("description must not contain traversal segments")
        return v


class UptimeTargetConfig(BaseModel):
    description: str
    url: str


class UptimeSettings(BaseModel):
    interval_minutes: int = Field(default=DEFAULT_UPTIME_INTERVAL, ge=0)
    downtime_tolerance: int = Field(default=1, ge=0)

    @field_validator("interval_minutes")
    @classmethod
    def validate_interval(cls, v):
        if v == 0:
            logger.warning(
                f"url_uptime_settings.interval_minutes is 0. Using default of {DEFAULT_UPTIME_INTERVAL} minutes."
            )
            return DEFAULT_UPTIME_INTERVAL
        return v


class WarningSettings(BaseModel):
    use_email: bool = False
    send_post_request: bool = False
    post_request_routes: List[str] = Field(default_factory=list)
    email: str = ""
    daily_max: int = Field(default=4, ge=0)


class SmtpSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    server: str = "smtp.example.com"
    port: int = Field(default=587, ge=0, le=65535)
    username: str = ""
    password: str = ""
    from_address: str = Field(default="", alias="from")


class Settings(BaseSettings):
    # Auth for outbound calls; a non-empty token disables JWT issuance
    token: str = ""
    secret: str = ""
    jwt_expiry: int = Field(default=600, ge=0)
    payload: Dict[str, Any] = Field(default_factory=dict)

    backups: List[BackupTargetConfig] = Field(default_factory=list)
    urls: List[UptimeTargetConfig] = Field(default_factory=list)
    url_uptime_settings: UptimeSettings = Field(default_factory=UptimeSettings)
    warning_settings: WarningSettings = Field(default_factory=WarningSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)

    # Station
    backups_enabled: bool = True
    data_dir: Path = Path(".")
    tick_queue_size: int = Field(default=16, ge=1)

    # Process
    debug: bool = False
    log_file: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix="WEBSYNC_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("backups")
    @classmethod
    def validate_unique_descriptions(cls, v):
        seen = set()
        for target in v:
            if target.description in seen:
                raise ValueError(
                    f"Duplicate backup description '{target.description}': "
                    "descriptions name the storage folder and must be unique"
                )
            seen.add(target.description)
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=config_file_path()),
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    logger.info(
        f"Configuration loaded: {len(settings.backups)} backup targets, {len(settings.urls)} uptime urls"
    )
    return settings
