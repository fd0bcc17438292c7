"""
Administrative actions on the cursor gallery.

Each action is one self-contained request: guard check, read the gallery,
change it, write it back. Guard failures propagate. Everything else is
recovered and reported as warnings on the ActionResult so that a failed
sub-step never loses the rest of the submission.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

from cursor_gallery.admin.guard import AdminRequest, RequestGuard
from cursor_gallery.core.errors import (
    ImageProcessingError,
    LastRecordError,
    NotFoundError,
)
from cursor_gallery.core.selection import CursorSelector
from cursor_gallery.imaging.media_library import MediaLibrary
from cursor_gallery.imaging.normalizer import ImageNormalizer
from cursor_gallery.storage.gallery_store import GalleryStore
from cursor_gallery.storage.schema import (
    CursorRecord,
    FieldWarning,
    apply_form_fields,
)
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


# Nonce action names
SAVE_ACTION = "custom_cursor_save"
NEW_ACTION = "custom_cursor_new"
DELETE_ACTION = "custom_cursor_delete"
NEXT_ACTION = "custom_cursor_next"
PREV_ACTION = "custom_cursor_prev"
SELECT_ACTION = "custom_cursor_select"


class ActionStatus(Enum):
    """User-visible outcome of an action."""

    SUCCESS = "success"
    PARTIAL = "partial"  # Saved, but some fields were not applied
    ERROR = "error"  # Rejected, gallery unchanged


@dataclass
class ActionResult:
    """Outcome of an administrative action."""

    status: ActionStatus

    # Current record after the action
    record: CursorRecord

    warnings: List[FieldWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is not ActionStatus.ERROR


class CursorAdmin:
    """
    Entry points for the administrative interface.

    Args:
        gallery: Gallery store
        guard: Nonce and privilege checks
        media: Upload storage (uploads are refused without it)
        normalizer: Image resizer (images are stored unresized without it)
    """

    def __init__(
        self,
        gallery: GalleryStore,
        guard: RequestGuard,
        media: Optional[MediaLibrary] = None,
        normalizer: Optional[ImageNormalizer] = None,
    ):
        self._gallery = gallery
        self._guard = guard
        self._media = media
        self._normalizer = normalizer
        self._selector = CursorSelector(gallery)

    def current(self) -> CursorRecord:
        """Record shown in the editor (read-only, no guard)."""
        return self._selector.current

    def save(self, request: AdminRequest) -> ActionResult:
        """
        Overwrite the current record with the submitted fields.

        Invalid fields and image failures become warnings; the rest of the
        record is still saved.

        Raises:
            IntegrityCheckError, AuthorizationError
        """
        self._guard.check(request, SAVE_ACTION)

        previous = self._selector.current
        updated, warnings = apply_form_fields(previous, request.fields)

        if request.upload is not None:
            try:
                updated = replace(updated, image=self._store_image(request, int(updated.size)))
            except ImageProcessingError as e:
                logger.warning(f"Cursor {previous.id} image not updated: {e}")
                warnings.append(FieldWarning(field="image", message=str(e)))

        self._gallery.upsert(updated)

        status = ActionStatus.PARTIAL if warnings else ActionStatus.SUCCESS
        return ActionResult(status=status, record=updated, warnings=warnings)

    def create(self, request: AdminRequest) -> ActionResult:
        """Add a default cursor and select it."""
        self._guard.check(request, NEW_ACTION)
        return ActionResult(status=ActionStatus.SUCCESS, record=self._selector.create())

    def delete(self, request: AdminRequest, cursor_id: Optional[int] = None) -> ActionResult:
        """
        Delete a cursor (the current one by default).

        Deleting the last cursor or an unknown id is rejected with an
        ERROR result and leaves the gallery unchanged.
        """
        self._guard.check(request, DELETE_ACTION)

        target_id = cursor_id if cursor_id is not None else self._selector.current.id
        try:
            record = self._selector.delete(target_id)
        except (LastRecordError, NotFoundError) as e:
            logger.warning(f"Delete rejected: {e}")
            return self._rejected("id", str(e))

        return ActionResult(status=ActionStatus.SUCCESS, record=record)

    def next(self, request: AdminRequest) -> ActionResult:
        self._guard.check(request, NEXT_ACTION)
        return ActionResult(status=ActionStatus.SUCCESS, record=self._selector.next())

    def prev(self, request: AdminRequest) -> ActionResult:
        self._guard.check(request, PREV_ACTION)
        return ActionResult(status=ActionStatus.SUCCESS, record=self._selector.prev())

    def select(self, request: AdminRequest, cursor_id: int) -> ActionResult:
        """Select a cursor by id; an unknown id keeps the current selection."""
        self._guard.check(request, SELECT_ACTION)
        try:
            record = self._selector.select(cursor_id)
        except NotFoundError as e:
            return self._rejected("id", str(e))
        return ActionResult(status=ActionStatus.SUCCESS, record=record)

    def _store_image(self, request: AdminRequest, target_size: int):
        if self._media is None:
            raise ImageProcessingError("Uploads are not configured")

        stored = self._media.add(request.upload.filename, request.upload.data)
        if self._normalizer is not None:
            try:
                self._normalizer.normalize(stored.path, target_size)
            except ImageProcessingError:
                # The record keeps its previous image, so drop the orphan
                stored.path.unlink(missing_ok=True)
                raise
        return stored.ref

    def _rejected(self, field_name: str, message: str) -> ActionResult:
        return ActionResult(
            status=ActionStatus.ERROR,
            record=self._selector.current,
            warnings=[FieldWarning(field=field_name, message=message)],
        )
