"""Data models for wayback_pinner."""

from wayback_pinner.models.config import (
    DEFAULT_GATEWAY,
    DEFAULT_PINNER,
    AppConfig,
    PinMode,
    PinningConfig,
)
from wayback_pinner.models.records import ArchiveRequest, ArchiveResult, ResourceError

__all__ = [
    "DEFAULT_GATEWAY", "DEFAULT_PINNER",
    "AppConfig", "PinMode", "PinningConfig",
    "ArchiveRequest", "ArchiveResult", "ResourceError",
]
