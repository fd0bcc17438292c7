"""
Configuration management for CursorGallery.

All configuration is held in explicit dataclasses that are passed to the
components that need them. There is no process-wide option registry.
"""

from dataclasses import dataclass, field
import os
import secrets
from pathlib import Path


@dataclass
class StorageConfig:
    """Backing store and media configuration."""

    # Directory holding the store file, media uploads and the optional log
    data_dir: Path = field(default_factory=lambda: Path.home() / ".cursorgallery")

    # JSON file used by the file-backed key-value store
    store_filename: str = "cursor_store.json"

    # Uploaded cursor images live here (relative to data_dir)
    media_dirname: str = "media"

    # Public URL prefix under which media_dir is served
    media_base_url: str = "/media/"

    log_filename: str = "cursorgallery.log"

    # File logging is OFF by default
    enable_file_logging: bool = False

    # Keys in the backing store
    gallery_key: str = "custom_cursor_gallery"
    current_key: str = "custom_cursor_current_id"
    media_counter_key: str = "custom_cursor_media_next_id"

    # Prefix of the legacy single-cursor option keys
    legacy_prefix: str = "custom_cursor_"

    def __post_init__(self):
        """Normalize path types."""
        self.data_dir = Path(self.data_dir)

    @property
    def store_path(self) -> Path:
        """Get full path to the key-value store file."""
        return self.data_dir / self.store_filename

    @property
    def media_dir(self) -> Path:
        """Get full path to the media upload directory."""
        return self.data_dir / self.media_dirname

    @property
    def log_path(self) -> Path:
        """Get full path to log file."""
        return self.data_dir / self.log_filename


@dataclass
class RenderConfig:
    """Names and timings baked into the generated CSS/JS."""

    # Class added to <body> to activate the cursor override
    marker_class: str = "custom-cursor-area"

    # Class of the element that follows the pointer when animated
    animated_class: str = "custom-cursor-animated"

    # Class toggled while the mouse button is held
    clicking_class: str = "clicking"

    # Keyframe names are prefix + animation type (e.g. custom-cursor-spin)
    keyframe_prefix: str = "custom-cursor-"

    z_index: int = 9999

    # Length of the click keyframe and the delay before it is cleared
    click_duration_sec: float = 0.3
    click_release_delay_ms: int = 300


@dataclass
class SecurityConfig:
    """Request integrity settings for administrative actions."""

    # Without an explicit key every process gets its own, so nonces do not
    # survive a restart
    secret_key: str = field(
        default_factory=lambda: os.getenv("CURSORGALLERY_SECRET_KEY")
        or secrets.token_hex(32)
    )

    nonce_lifetime_sec: int = 86400


@dataclass
class AppConfig:
    """Main application configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    version: str = "0.1.0"

    # Log level from environment or default to WARNING
    log_level: str = field(
        default_factory=lambda: os.getenv("CURSORGALLERY_LOG_LEVEL", "WARNING")
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """Validate configuration parameters."""
        if not self.storage.gallery_key or not self.storage.current_key:
            raise ValueError("gallery_key and current_key must be non-empty")

        if self.storage.gallery_key == self.storage.current_key:
            raise ValueError("gallery_key and current_key must differ")

        if not self.render.marker_class or not self.render.animated_class:
            raise ValueError("marker_class and animated_class must be non-empty")

        if self.render.z_index <= 0:
            raise ValueError("z_index must be positive")

        if self.render.click_duration_sec <= 0:
            raise ValueError("click_duration_sec must be positive")

        if self.render.click_release_delay_ms < 0:
            raise ValueError("click_release_delay_ms must be non-negative")

        if not self.security.secret_key:
            raise ValueError("secret_key must be non-empty")

        if self.security.nonce_lifetime_sec <= 0:
            raise ValueError("nonce_lifetime_sec must be positive")


def get_default_config() -> AppConfig:
    """
    Get default application configuration.

    Returns:
        AppConfig instance with default values
    """
    return AppConfig()
