"""
Embed directive: ``[custom_cursor id="2"]``.

Page content is scanned for directives and each one is replaced by the
rendered cursor. Visitors never see an error: an unknown id, a disabled
cursor or a cursor without image all expand to nothing.
"""

from typing import Dict, Mapping, Optional
import re

from cursor_gallery.core.config import RenderConfig
from cursor_gallery.render.codegen import render
from cursor_gallery.storage.backing_store import BackingStoreError
from cursor_gallery.storage.gallery_store import GalleryStore
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


DIRECTIVE_NAME = "custom_cursor"

DEFAULT_CURSOR_ID = 1

DIRECTIVE_PATTERN = re.compile(
    r"\[" + DIRECTIVE_NAME + r"(?P<attrs>(?:\s[^\]]*)?)\]"
)

_ATTRIBUTE_PATTERN = re.compile(
    r"""(?P<name>[A-Za-z_][\w-]*)\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'\]]+))"""
)


def parse_attributes(text: str) -> Dict[str, str]:
    """
    Parse directive attributes.

    Args:
        text: Attribute text, e.g. `` id="2"``

    Returns:
        Lower-cased attribute names mapped to their values
    """
    attrs: Dict[str, str] = {}
    for match in _ATTRIBUTE_PATTERN.finditer(text or ""):
        value = match.group("dq")
        if value is None:
            value = match.group("sq")
        if value is None:
            value = match.group("bare")
        attrs[match.group("name").lower()] = value
    return attrs


def resolve_id(attrs: Mapping[str, str]) -> Optional[int]:
    """Cursor id named by the attributes, DEFAULT_CURSOR_ID if absent, None if invalid."""
    raw = attrs.get("id")
    if raw is None:
        return DEFAULT_CURSOR_ID
    try:
        cursor_id = int(str(raw).strip())
    except ValueError:
        return None
    return cursor_id if cursor_id > 0 else None


class EmbedRenderer:
    """Expands embed directives against a gallery. Read-only."""

    def __init__(self, gallery: GalleryStore, config: Optional[RenderConfig] = None):
        self._gallery = gallery
        self._config = config

    def render_directive(self, attrs: Mapping[str, str]) -> str:
        """
        HTML for one directive.

        Args:
            attrs: Parsed directive attributes

        Returns:
            <style>/<script> markup, or "" if there is nothing to show
        """
        cursor_id = resolve_id(attrs)
        if cursor_id is None:
            logger.debug(f"Ignoring directive with invalid id {attrs.get('id')!r}")
            return ""

        try:
            record = self._gallery.get_by_id(cursor_id)
        except BackingStoreError as e:
            logger.error(f"Cannot load cursor {cursor_id} for embed: {e}")
            return ""

        if record is None:
            logger.debug(f"Directive references unknown cursor {cursor_id}")
            return ""

        return render(record, self._config).to_html()

    def expand(self, content: str) -> str:
        """Replace every directive in ``content`` with its rendered output."""
        return DIRECTIVE_PATTERN.sub(
            lambda m: self.render_directive(parse_attributes(m.group("attrs"))),
            content,
        )
