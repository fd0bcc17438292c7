"""
Error taxonomy shared by the gallery, the admin actions and the collaborators.

Authorization and integrity failures abort a request. The others are
recoverable and are reported back to the administrator as warnings.
"""


class CursorGalleryError(Exception):
    """Base class for all CursorGallery errors."""

    pass


class AuthorizationError(CursorGalleryError):
    """Caller lacks the privilege to manage cursors."""

    pass


class IntegrityCheckError(CursorGalleryError):
    """Request token is missing, stale or forged."""

    pass


class NotFoundError(CursorGalleryError):
    """Referenced cursor id does not exist."""

    def __init__(self, cursor_id: int):
        super().__init__(f"Cursor {cursor_id} not found")
        self.cursor_id = cursor_id


class LastRecordError(CursorGalleryError):
    """Attempt to delete the only remaining cursor."""

    def __init__(self, cursor_id: int):
        super().__init__(f"Cannot delete cursor {cursor_id}: it is the last one")
        self.cursor_id = cursor_id


class ImageProcessingError(CursorGalleryError):
    """Upload or resize of a cursor image failed."""

    pass
