"""Availability engine settings models"""

import re
from typing import Any, List, Literal

from pydantic import BaseModel, Field, field_validator

from availability.utils import data_dir_path, get_version

NOTIFICATION_EVENTS = ["movie", "series", "new_episodes", "album"]


def version_key(version: str) -> tuple[int, ...]:
    """Numeric release parts, so "0.10.0" sorts after "0.9.0"."""
    return tuple(int(part) for part in re.findall(r"\d+", version))


class DatabaseModel(BaseModel):
    host: str = Field(
        default_factory=lambda: f"sqlite:///{data_dir_path / 'availability.db'}",
        description="Database connection string",
    )


class NotificationsModel(BaseModel):
    enabled: bool = Field(default=False, description="Enable notifications")
    on_event: List[str] = Field(
        default_factory=lambda: list(NOTIFICATION_EVENTS),
        description="Availability events to send notifications for",
    )
    service_urls: List[str] = Field(
        default_factory=list,
        description="Apprise notification service URLs (e.g., Discord webhooks)",
    )

    @field_validator("on_event")
    def check_on_event(cls, v):
        unknown = [event for event in v if event not in NOTIFICATION_EVENTS]
        if unknown:
            raise ValueError(
                f"Unknown notification events {unknown}, expected any of {NOTIFICATION_EVENTS}"
            )
        return v


class WorkersModel(BaseModel):
    max_workers: int = Field(
        default=4, ge=1, description="Number of notification worker threads"
    )
    max_queue_size: int = Field(
        default=1000,
        ge=1,
        description="Pending notification tasks kept before the oldest is dropped",
    )


class MetadataModel(BaseModel):
    tmdb_api_key: str = Field(default="", description="TMDB v3 API key")
    language: str = Field(default="en", description="Metadata language")
    timeout: int = Field(default=10, ge=1, description="Request timeout in seconds")


class LoggingModel(BaseModel):
    enabled: bool = Field(default=False, description="Enable file logging")
    retention_hours: int = Field(
        default=24, description="Log retention period in hours"
    )
    rotation_mb: int = Field(default=10, description="Log file rotation size in MB")
    compression: Literal["zip", "gz", "bz2", "xz", "disabled"] = Field(
        default="disabled",
        description="Log compression format (empty for no compression)",
    )

    @field_validator("compression", mode="before")
    def check_compression(cls, v):
        if v == "" or not v:
            return "disabled"
        return v


class AppModel(BaseModel):
    version: str = Field(default_factory=get_version, description="Application version")
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        Field(default="INFO", description="Logging level")
    )
    database: DatabaseModel = Field(
        default_factory=lambda: DatabaseModel(), description="Database configuration"
    )
    notifications: NotificationsModel = Field(
        default_factory=lambda: NotificationsModel(),
        description="Notifications configuration",
    )
    workers: WorkersModel = Field(
        default_factory=lambda: WorkersModel(),
        description="Notification worker pool configuration",
    )
    metadata: MetadataModel = Field(
        default_factory=lambda: MetadataModel(),
        description="Metadata lookup configuration",
    )
    logging: LoggingModel = Field(
        default_factory=lambda: LoggingModel(), description="Logging configuration"
    )

    @field_validator("log_level", mode="before")
    def check_debug(cls, v):
        if v is True:
            return "DEBUG"
        elif v is False:
            return "INFO"
        return v.upper()

    def __init__(self, **data: Any):
        current_version = get_version()
        existing_version = data.get("version", current_version)
        super().__init__(**data)
        if version_key(existing_version) < version_key(current_version):
            self.version = current_version
