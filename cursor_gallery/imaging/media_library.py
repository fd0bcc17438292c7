"""
Storage for uploaded cursor images.

Each upload gets a sequential attachment id and is written under the
media directory as ``<id>-<sanitized name>``.
"""

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote
import re

from cursor_gallery.core.config import StorageConfig
from cursor_gallery.core.errors import ImageProcessingError
from cursor_gallery.storage.backing_store import KeyValueStore
from cursor_gallery.storage.schema import ImageRef
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


ALLOWED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp")

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class StoredMedia:
    """An uploaded file as stored in the media directory."""

    ref: ImageRef
    path: Path


def sanitize_filename(filename: str) -> str:
    """
    Reduce an uploaded filename to a safe basename.

    Directory components are dropped and anything outside
    ``[A-Za-z0-9._-]`` becomes a dash.
    """
    base = Path(filename.replace("\\", "/")).name
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", base).strip(".-")
    return cleaned or "cursor"


class MediaLibrary:
    """Writes uploads to disk and hands back ImageRefs."""

    def __init__(self, config: StorageConfig, backing: KeyValueStore):
        """
        Initialize media library.

        Args:
            config: Storage configuration (media dir, base URL, counter key)
            backing: Key-value store holding the attachment id counter

        Raises:
            ImageProcessingError: If the media directory cannot be created
        """
        self._config = config
        self._backing = backing

        try:
            self._media_dir = config.media_dir.resolve(strict=False)
            self._media_dir.mkdir(parents=True, exist_ok=True)
        except (RuntimeError, OSError) as e:
            raise ImageProcessingError(f"Invalid media directory: {e}") from e

    @property
    def media_dir(self) -> Path:
        return self._media_dir

    def add(self, filename: str, data: bytes) -> StoredMedia:
        """
        Store an uploaded image.

        Args:
            filename: Client-supplied filename
            data: File contents

        Returns:
            StoredMedia with the new ImageRef and the file path

        Raises:
            ImageProcessingError: If the file type is not allowed, the upload
                is empty, or the file cannot be written
        """
        name = sanitize_filename(filename)
        if Path(name).suffix.lower() not in ALLOWED_EXTENSIONS:
            raise ImageProcessingError(f"File type not allowed: {filename!r}")

        if not data:
            raise ImageProcessingError(f"Empty upload: {filename!r}")

        attachment_id = self._next_attachment_id()
        stored_name = f"{attachment_id}-{name}"
        path = self._media_dir / stored_name

        if path.resolve(strict=False).parent != self._media_dir:
            raise ImageProcessingError("Path traversal detected")

        try:
            path.write_bytes(data)
        except OSError as e:
            raise ImageProcessingError(f"Failed to store {stored_name}: {e}") from e

        url = self._config.media_base_url.rstrip("/") + "/" + quote(stored_name)
        logger.info(f"Stored upload {stored_name} as attachment {attachment_id}")
        return StoredMedia(ref=ImageRef(attachment_id=attachment_id, url=url), path=path)

    def _next_attachment_id(self) -> int:
        key = self._config.media_counter_key
        attachment_id = int(self._backing.get(key, 1))
        self._backing.set(key, attachment_id + 1)
        return attachment_id
