"""
Gallery of cursor records on top of a key-value backing store.

The gallery is persisted as one ordered list under ``gallery_key`` and the
current selection under ``current_key``. Every operation reads the whole
list, changes it and writes the whole list back. There is no locking;
with several administrators the last write wins.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from cursor_gallery.core.config import StorageConfig
from cursor_gallery.core.errors import LastRecordError, NotFoundError
from cursor_gallery.storage.backing_store import KeyValueStore
from cursor_gallery.storage.schema import (
    LEGACY_FIELDS,
    CursorRecord,
    from_legacy,
    new_record,
)
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


class GalleryStore:
    """
    Ordered collection of cursor records keyed by a stable numeric id.

    Invariants kept by this class:
    - ids are unique and never handed out twice by the same instance
    - once initialized the gallery is never empty
    - the current id always names an existing record (repaired on read)
    """

    def __init__(self, backing: KeyValueStore, config: StorageConfig):
        """
        Initialize gallery store.

        Args:
            backing: Key-value store holding the gallery
            config: Storage configuration (key names)
        """
        self._backing = backing
        self._config = config

        # Highest id ever seen or issued, so deleted ids are not reused
        self._highest_id = 0

    def exists(self) -> bool:
        """True if a gallery has been persisted."""
        return self._backing.get(self._config.gallery_key) is not None

    def initialize(self) -> bool:
        """
        Seed the gallery if none exists yet.

        The first record is migrated from the legacy single-cursor keys when
        any of them is present, otherwise it is a default record with id 1.

        Returns:
            True if a gallery was created, False if one already existed
        """
        if self.exists():
            return False

        legacy = self._legacy_options()
        if legacy:
            record = from_legacy(legacy, cursor_id=1)
            logger.info(f"Migrated legacy cursor settings ({len(legacy)} keys)")
        else:
            record = new_record(1)
            logger.info("Seeded gallery with default cursor")

        self._save([record])
        self._backing.set(self._config.current_key, record.id)
        return True

    def list(self) -> List[CursorRecord]:
        """All records in insertion order."""
        return self._load()

    def get_by_id(self, cursor_id: int) -> Optional[CursorRecord]:
        """
        Look up a record.

        Args:
            cursor_id: Record id

        Returns:
            The record, or None if no record has that id
        """
        for record in self._load():
            if record.id == cursor_id:
                return record
        return None

    def require(self, cursor_id: int) -> CursorRecord:
        """Like get_by_id but raises NotFoundError."""
        record = self.get_by_id(cursor_id)
        if record is None:
            raise NotFoundError(cursor_id)
        return record

    def upsert(self, record: CursorRecord) -> None:
        """
        Replace the record with the same id in place, or append it.

        Args:
            record: Record to store

        Raises:
            ValueError: If the record fails validation
        """
        record.validate()
        records, kept = self._read()

        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                break
        else:
            records.append(record)

        self._save(records, kept)
        logger.info(f"Cursor {record.id} saved")

    def create(self) -> int:
        """
        Append a default record and make it current.

        Returns:
            The new record's id
        """
        records, kept = self._read()
        new_id = self._next_id(records)

        records.append(new_record(new_id))
        self._save(records, kept)
        self._backing.set(self._config.current_key, new_id)

        logger.info(f"Cursor {new_id} created")
        return new_id

    def delete(self, cursor_id: int) -> bool:
        """
        Remove a record, repairing the current selection if needed.

        Args:
            cursor_id: Record id

        Returns:
            True once deleted

        Raises:
            LastRecordError: If only one record remains
            NotFoundError: If no record has that id
        """
        records, kept = self._read()
        if len(records) <= 1:
            raise LastRecordError(cursor_id)

        remaining = [r for r in records if r.id != cursor_id]
        if len(remaining) == len(records):
            raise NotFoundError(cursor_id)

        self._save(remaining, kept)

        if self.current_id == cursor_id:
            self._backing.set(self._config.current_key, remaining[0].id)
            logger.info(f"Current cursor moved to {remaining[0].id}")

        logger.info(f"Cursor {cursor_id} deleted")
        return True

    @property
    def current_id(self) -> Optional[int]:
        """The stored current id, unchecked."""
        value = self._backing.get(self._config.current_key)
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid current id {value!r}")
            return None

    def set_current(self, cursor_id: int) -> None:
        """
        Select a record for editing.

        Raises:
            NotFoundError: If no record has that id
        """
        self.require(cursor_id)
        self._backing.set(self._config.current_key, cursor_id)

    def get_current(self) -> CursorRecord:
        """
        The current record, repairing the store if necessary.

        An empty or unreadable gallery gets a fresh default record. A current
        id that no longer exists falls back to the first record.
        """
        records, kept = self._read()

        if not records:
            record = new_record(self._next_id(records))
            logger.warning(f"Gallery empty, minted default cursor {record.id}")
            self._save([record], kept)
            self._backing.set(self._config.current_key, record.id)
            return record

        current_id = self.current_id
        for record in records:
            if record.id == current_id:
                return record

        logger.warning(
            f"Current cursor {current_id} missing, falling back to {records[0].id}"
        )
        self._backing.set(self._config.current_key, records[0].id)
        return records[0]

    def _next_id(self, records: List[CursorRecord]) -> int:
        highest = max((r.id for r in records), default=0)
        self._highest_id = max(self._highest_id, highest) + 1
        return self._highest_id

    def _legacy_options(self) -> Dict[str, Any]:
        prefix = self._config.legacy_prefix
        present = set(self._backing.keys())
        return {
            field: self._backing.get(prefix + field)
            for field in LEGACY_FIELDS
            if prefix + field in present
        }

    def _load(self) -> List[CursorRecord]:
        return self._read()[0]

    def _read(self) -> Tuple[List[CursorRecord], List[Any]]:
        """
        Decode the stored gallery.

        Returns:
            (records, kept) where ``kept`` holds the raw entries that could
            not be decoded. They are written back unchanged on save so a
            hand-edited or newer-format entry is never silently dropped, and
            their ids still count towards the highest id issued.
        """
        raw = self._backing.get(self._config.gallery_key)
        if raw is None:
            return [], []

        if not isinstance(raw, list):
            logger.error(f"Corrupted gallery: expected a list, got {type(raw).__name__}")
            return [], []

        records: List[CursorRecord] = []
        kept: List[Any] = []
        seen = set()
        for index, entry in enumerate(raw):
            if not isinstance(entry, dict):
                logger.warning(f"Skipping gallery entry {index}: not an object")
                kept.append(entry)
                continue
            try:
                record = CursorRecord.from_dict(entry)
            except ValueError as e:
                logger.warning(f"Skipping gallery entry {index}: {e}")
                kept.append(entry)
                self._reserve_id(entry.get("id"))
                continue
            if record.id in seen:
                # First entry wins; the duplicate is dropped on the next write
                logger.warning(f"Skipping gallery entry {index}: duplicate id {record.id}")
                continue
            seen.add(record.id)
            records.append(record)

        if records:
            self._highest_id = max(self._highest_id, max(seen))
        return records, kept

    def _reserve_id(self, value: Any) -> None:
        try:
            cursor_id = int(value)
        except (TypeError, ValueError):
            return
        if cursor_id > 0:
            self._highest_id = max(self._highest_id, cursor_id)

    def _save(self, records: List[CursorRecord], kept: Sequence[Any] = ()) -> None:
        self._backing.set(
            self._config.gallery_key,
            [r.to_dict() for r in records] + list(kept),
        )
