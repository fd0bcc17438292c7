"""
Selection of the cursor currently being edited.

State is the current id. Transitions:
    NEXT / PREV   -> neighbour in list order, wrapping around
    CREATE        -> the newly created id
    DELETE        -> first record if the current one was deleted
    SELECT        -> an explicit, existing id
"""

from enum import Enum
from typing import Sequence

from cursor_gallery.storage.gallery_store import GalleryStore
from cursor_gallery.storage.schema import CursorRecord
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


class Direction(Enum):
    """Cyclic navigation direction."""

    NEXT = 1
    PREV = -1


def step_id(ids: Sequence[int], current_id: int, direction: Direction) -> int:
    """
    Neighbour of ``current_id`` in ``ids`` with wraparound.

    Args:
        ids: Record ids in list order
        current_id: Starting id
        direction: NEXT or PREV

    Returns:
        Id at position (i + 1) mod N or (i - 1 + N) mod N. An unknown
        ``current_id`` yields the first id.

    Raises:
        ValueError: If ``ids`` is empty
    """
    if not ids:
        raise ValueError("Cannot navigate an empty gallery")

    if current_id not in ids:
        return ids[0]

    index = list(ids).index(current_id)
    return ids[(index + direction.value) % len(ids)]


class CursorSelector:
    """
    Navigation over a GalleryStore.

    Every method returns the record that is current afterwards.
    """

    def __init__(self, gallery: GalleryStore):
        self._gallery = gallery

    @property
    def current(self) -> CursorRecord:
        """Current record (never raises for a missing selection)."""
        return self._gallery.get_current()

    def next(self) -> CursorRecord:
        return self._move(Direction.NEXT)

    def prev(self) -> CursorRecord:
        return self._move(Direction.PREV)

    def select(self, cursor_id: int) -> CursorRecord:
        """
        Jump to a specific record.

        Raises:
            NotFoundError: If no record has that id
        """
        self._gallery.set_current(cursor_id)
        return self._gallery.require(cursor_id)

    def create(self) -> CursorRecord:
        """Create a default record and select it."""
        new_id = self._gallery.create()
        return self._gallery.require(new_id)

    def delete(self, cursor_id: int) -> CursorRecord:
        """
        Delete a record and return the (possibly repaired) current one.

        Raises:
            LastRecordError: If it is the only record
            NotFoundError: If no record has that id
        """
        self._gallery.delete(cursor_id)
        return self._gallery.get_current()

    def _move(self, direction: Direction) -> CursorRecord:
        current = self._gallery.get_current()
        records = self._gallery.list()

        target_id = step_id([r.id for r in records], current.id, direction)
        self._gallery.set_current(target_id)

        logger.debug(f"Selection {direction.name}: {current.id} -> {target_id}")
        return next(r for r in records if r.id == target_id)
