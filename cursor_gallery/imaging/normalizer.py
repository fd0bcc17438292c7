"""
Cursor image normalization.

Shrinks an uploaded image so that it fits inside a square of the cursor
size. Images that already fit are left alone; nothing is ever upscaled.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import cv2
import numpy as np

from cursor_gallery.core.errors import ImageProcessingError
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class NormalizedImage:
    """Outcome of normalizing one image file."""

    path: Path
    width: int
    height: int
    resized: bool


def fit_within(width: int, height: int, target: int) -> Tuple[int, int]:
    """
    Dimensions of (width, height) scaled down to fit a target square.

    Args:
        width: Original width in pixels
        height: Original height in pixels
        target: Edge length of the target square

    Returns:
        (new_width, new_height), aspect ratio preserved, each at least 1.
        Unchanged if the image already fits.
    """
    if width <= target and height <= target:
        return width, height

    scale = target / max(width, height)
    return max(1, round(width * scale)), max(1, round(height * scale))


class ImageNormalizer:
    """
    Resize cursor images in place with OpenCV.

    Alpha channels are preserved (IMREAD_UNCHANGED). Downscaling uses area
    interpolation, which avoids moire on small targets.
    """

    def __init__(self, interpolation: int = cv2.INTER_AREA):
        self._interpolation = interpolation

    def normalize(self, path: Path, target_size: int) -> NormalizedImage:
        """
        Shrink the image at ``path`` to fit ``target_size`` x ``target_size``.

        Args:
            path: Image file, overwritten if resized
            target_size: Target square edge in pixels

        Returns:
            NormalizedImage describing the file afterwards

        Raises:
            ImageProcessingError: If the image cannot be read or written
        """
        path = Path(path)
        if target_size <= 0:
            raise ImageProcessingError(f"Invalid target size {target_size}")

        image = self._read(path)
        height, width = image.shape[:2]

        new_width, new_height = fit_within(width, height, target_size)
        if (new_width, new_height) == (width, height):
            logger.info(f"{path.name}: {width}x{height} fits {target_size}px, kept")
            return NormalizedImage(path=path, width=width, height=height, resized=False)

        try:
            resized = cv2.resize(
                image, (new_width, new_height), interpolation=self._interpolation
            )
        except cv2.error as e:
            raise ImageProcessingError(f"Cannot resize {path.name}: {e}") from e
        self._write(path, resized)

        logger.info(
            f"{path.name}: resized {width}x{height} -> {new_width}x{new_height}"
        )
        return NormalizedImage(path=path, width=new_width, height=new_height, resized=True)

    def _read(self, path: Path) -> np.ndarray:
        # imdecode handles non-ASCII paths that imread cannot open on Windows
        try:
            raw = np.fromfile(str(path), dtype=np.uint8)
        except OSError as e:
            raise ImageProcessingError(f"Cannot read {path.name}: {e}") from e

        try:
            image = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED) if raw.size else None
        except cv2.error as e:
            raise ImageProcessingError(f"Cannot decode {path.name}: {e}") from e
        if image is None:
            raise ImageProcessingError(f"{path.name} is not a readable image")
        return image

    def _write(self, path: Path, image: np.ndarray) -> None:
        try:
            ok, encoded = cv2.imencode(path.suffix or ".png", image)
        except cv2.error as e:
            # e.g. OpenCV has no GIF encoder
            raise ImageProcessingError(f"Cannot encode {path.name}: {e}") from e
        if not ok:
            raise ImageProcessingError(f"Cannot encode {path.name}")
        try:
            encoded.tofile(str(path))
        except OSError as e:
            raise ImageProcessingError(f"Cannot write {path.name}: {e}") from e
